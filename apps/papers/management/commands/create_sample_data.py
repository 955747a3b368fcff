from datetime import timedelta

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.papers.models import ResearchPaper

User = get_user_model()


class Command(BaseCommand):
    help = 'Creates sample users and papers for trying out the API'

    def _user(self, username, role, first_name, last_name):
        user = User.objects.filter(username=username).first()
        if user:
            return user
        user = User.objects.create_user(
            username=username,
            email=f'{username}@test.com',
            password='testpass123',
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        self.stdout.write(self.style.SUCCESS(f'Created {role}: {username}'))
        return user

    def handle(self, *args, **kwargs):
        self.stdout.write('Creating sample data...')

        student = self._user('student1', 'student', 'Alice', 'Johnson')
        self._user('student2', 'student', 'Bob', 'Smith')
        faculty = self._user('faculty1', 'faculty', 'Carol', 'Reyes')
        self._user('staff1', 'staff', 'Dana', 'Cruz')
        self._user('admin1', 'admin', 'Evan', 'Lim')

        now = timezone.now()

        # Still inside both windows
        ResearchPaper.objects.create(
            student=student,
            title='Solar Drying of Cassava Chips',
            abstract='We compare open-air and solar tunnel drying of cassava chips.',
            author='Alice Johnson',
            adviser='Dr. Carol Reyes',
            keywords=['solar energy', 'food processing'],
            year=now.year,
            submission_type='draft',
        )

        # Both windows expired, waiting for review
        ResearchPaper.objects.create(
            student=student,
            title='Mobile Learning Adoption in Rural Schools',
            abstract='A survey of 412 students on mobile learning habits.',
            author='Alice Johnson',
            adviser='Dr. Carol Reyes',
            co_authors=['Bob Smith'],
            keywords=['education', 'mobile learning'],
            year=now.year,
            submission_type='draft',
            created_at=now - timedelta(days=2),
        )

        ResearchPaper.objects.create(
            student=student,
            title='Water Quality Index of the Upper River Basin',
            abstract='Monthly sampling over one year at six stations.',
            author='Alice Johnson',
            adviser='Dr. Carol Reyes',
            keywords=['environment', 'water quality'],
            year=now.year - 1,
            status='approved',
            submission_type='final',
            visibility='public',
            categories=['Environmental Science'],
            genre_tags=['Thesis'],
            reviewed_by=faculty,
            reviewed_at=now - timedelta(days=30),
            created_at=now - timedelta(days=60),
        )

        self.stdout.write(self.style.SUCCESS('Created 3 sample papers'))
        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write(
            'Test credentials: student1, faculty1, staff1 or admin1 with password=testpass123'
        )
