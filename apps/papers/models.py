import uuid
from django.db import models
from django.contrib.auth.models import AbstractUser
from django.utils import timezone

from . import windows


class User(AbstractUser):
    # AbstractUser already has first_name and last_name
    ROLE_CHOICES = [
        ('student', 'Student'),
        ('faculty', 'Faculty'),
        ('staff', 'Staff'),
        ('admin', 'Admin'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='student')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_idx'),
            models.Index(fields=['role'], name='users_role_idx'),
        ]

    @property
    def is_reviewer(self):
        return self.role in ('faculty', 'admin') or self.is_superuser

    @property
    def is_admin(self):
        return self.role == 'admin' or self.is_superuser

    @property
    def is_publisher(self):
        return self.role in ('staff', 'admin') or self.is_superuser


class ResearchPaper(models.Model):
    """
    A student's draft or final research paper.

    created_at is stamped once and never written through the API; the
    delete and revise windows are measured from it. status is only moved
    by faculty review.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]
    SUBMISSION_TYPES = [
        ('draft', 'Draft'),
        ('final', 'Final'),
    ]
    VISIBILITY_CHOICES = [
        ('public', 'Public'),
        ('campus', 'Campus'),
        ('private', 'Private'),
        ('embargo', 'Embargo'),
    ]

    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='papers'
    )
    title = models.CharField(max_length=500)
    abstract = models.TextField(blank=True)
    author = models.CharField(max_length=255, blank=True)
    adviser = models.CharField(max_length=255, blank=True)
    co_authors = models.JSONField(default=list, blank=True)
    keywords = models.JSONField(default=list, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending'
    )
    submission_type = models.CharField(
        max_length=10,
        choices=SUBMISSION_TYPES,
        blank=True
    )
    faculty_comment = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_papers'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)

    # Publishing, set by staff once a paper is approved
    visibility = models.CharField(
        max_length=10,
        choices=VISIBILITY_CHOICES,
        default='campus'
    )
    allowed_viewers = models.JSONField(default=list, blank=True)
    embargo_until = models.DateTimeField(null=True, blank=True)
    categories = models.JSONField(default=list, blank=True)
    genre_tags = models.JSONField(default=list, blank=True)

    # Not auto_now_add so fixtures and tests can backdate a paper
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'research_papers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['student', '-created_at'], name='papers_student_created_idx'),
            models.Index(fields=['status'], name='papers_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def is_approved(self):
        return self.status == 'approved'

    def window_state(self, now=None):
        if self.is_approved:
            return windows.WindowState(0.0, 0.0)
        return windows.evaluate(self.created_at, now)

    def gate(self, now=None):
        return windows.ActionGate(self.window_state(now))
