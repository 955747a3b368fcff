"""
Unit tests covering the submission windows, their server-side enforcement
and the surrounding API.

Tests On:
- Window evaluation, countdown formatting and the action gate
- Countdown timers and their teardown
- Delete/revise enforcement against the server clock
- Faculty review, the repository search and its visibility rules
- Staff publishing and admin account management
"""
import threading
import time
from datetime import datetime, timedelta, timezone as dt_timezone
from io import StringIO
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db.models import QuerySet
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from .models import ResearchPaper
from .review_service import ReviewService
from .text import clean_title, format_abstract, normalize_list, normalize_type
from .timers import ActionTimers, IntervalTicker
from .views import ResearchListView
from .windows import (
    FAR_PAST,
    ActionGate,
    evaluate,
    format_countdown,
    parse_created_at,
    remaining_seconds,
    window_phrase,
)

User = get_user_model()

NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=dt_timezone.utc)


def ago(seconds):
    return NOW - timedelta(seconds=seconds)


class WindowEvaluatorTestCase(SimpleTestCase):
    """Remaining time for the delete and revise windows."""

    def test_record_created_now_has_full_windows(self):
        state = evaluate(NOW, NOW)
        self.assertEqual(state.delete_remaining, 300)
        self.assertEqual(state.revise_remaining, 300)
        gate = ActionGate(state)
        self.assertTrue(gate.can_delete)
        self.assertTrue(gate.can_revise)

    def test_boundary_just_inside_window(self):
        gate = ActionGate(evaluate(ago(299), NOW))
        self.assertEqual(gate.state.delete_remaining, 1)
        self.assertTrue(gate.can_delete)
        self.assertTrue(gate.can_revise)
        self.assertFalse(gate.is_locked)

    def test_boundary_at_window_is_expired(self):
        gate = ActionGate(evaluate(ago(300), NOW))
        self.assertEqual(gate.state.delete_remaining, 0)
        self.assertEqual(gate.state.revise_remaining, 0)
        self.assertFalse(gate.can_delete)
        self.assertFalse(gate.can_revise)
        self.assertTrue(gate.is_locked)

    def test_inside_window_always_modifiable(self):
        for elapsed in (0, 1, 60, 150.5, 299.9):
            state = evaluate(ago(elapsed), NOW)
            self.assertGreater(state.delete_remaining, 0)
            self.assertGreater(state.revise_remaining, 0)
            self.assertTrue(state.can_modify)

    def test_past_window_always_locked(self):
        for elapsed in (300, 301, 3600, 86400 * 365):
            state = evaluate(ago(elapsed), NOW)
            self.assertEqual(state.delete_remaining, 0)
            self.assertEqual(state.revise_remaining, 0)
            self.assertFalse(state.can_modify)

    def test_malformed_created_at_is_locked(self):
        for value in ('', None, 'not a date', '2024-02-30T10:00:00Z', 12345):
            state = evaluate(value, NOW)
            self.assertEqual(state.delete_remaining, 0, value)
            self.assertEqual(state.revise_remaining, 0, value)
            self.assertTrue(ActionGate(state).is_locked)

    def test_iso_strings(self):
        self.assertEqual(evaluate('2026-03-02T11:58:00Z', NOW).delete_remaining, 180)
        self.assertEqual(evaluate('2026-03-02T13:58:00+02:00', NOW).delete_remaining, 180)
        # Naive strings are read as UTC
        self.assertEqual(evaluate('2026-03-02T11:58:00', NOW).delete_remaining, 180)

    def test_parse_created_at(self):
        self.assertEqual(parse_created_at('garbage'), FAR_PAST)
        self.assertEqual(
            parse_created_at('2026-03-02'),
            datetime(2026, 3, 2, tzinfo=dt_timezone.utc)
        )
        naive = datetime(2026, 3, 2, 11, 0)
        self.assertEqual(parse_created_at(naive), naive.replace(tzinfo=dt_timezone.utc))

    def test_idempotent(self):
        created = ago(42)
        self.assertEqual(evaluate(created, NOW), evaluate(created, NOW))

    def test_monotonic(self):
        created = ago(0)
        previous = None
        for step in range(0, 400, 7):
            remaining = evaluate(created, NOW + timedelta(seconds=step)).delete_remaining
            if previous is not None:
                self.assertLessEqual(remaining, previous)
            previous = remaining

    def test_future_created_at_does_not_extend_window(self):
        self.assertEqual(remaining_seconds(NOW + timedelta(minutes=10), NOW, 300), 300)

    def test_windows_are_independent(self):
        state = evaluate(ago(120), NOW, delete_window=60, revise_window=300)
        gate = ActionGate(state)
        self.assertFalse(gate.can_delete)
        self.assertTrue(gate.can_revise)
        self.assertTrue(gate.can_modify)
        self.assertFalse(gate.is_locked)

    @override_settings(PAPER_DELETE_WINDOW_SECONDS=10, PAPER_REVISE_WINDOW_SECONDS=20)
    def test_windows_read_from_settings(self):
        state = evaluate(ago(5), NOW)
        self.assertEqual(state.delete_remaining, 5)
        self.assertEqual(state.revise_remaining, 15)


class CountdownFormatTestCase(SimpleTestCase):

    def test_format(self):
        self.assertEqual(format_countdown(0), '0:00')
        self.assertEqual(format_countdown(59), '0:59')
        self.assertEqual(format_countdown(60), '1:00')
        self.assertEqual(format_countdown(125), '2:05')
        self.assertEqual(format_countdown(301), '5:01')

    def test_fractional_seconds_are_floored(self):
        self.assertEqual(format_countdown(59.9), '0:59')
        self.assertEqual(format_countdown(0.4), '0:00')

    def test_never_negative(self):
        self.assertEqual(format_countdown(-5), '0:00')
        self.assertEqual(format_countdown(None), '0:00')
        self.assertEqual(format_countdown(float('nan')), '0:00')

    def test_infinite_values(self):
        self.assertEqual(format_countdown(float('inf')), '0:00')
        self.assertEqual(format_countdown(float('-inf')), '0:00')

    def test_window_phrase(self):
        self.assertEqual(window_phrase(300), '5 minutes')
        self.assertEqual(window_phrase(60), '1 minute')
        self.assertEqual(window_phrase(90), '90 seconds')
        self.assertEqual(window_phrase(30), '30 seconds')
        self.assertEqual(window_phrase(1), '1 second')


class ActionGateTestCase(SimpleTestCase):

    def setUp(self):
        self.calls = []
        self.record = {'id': 'p1', 'createdAt': '2026-03-02T11:58:00Z'}

    def test_allowed_action_fires_callback(self):
        gate = ActionGate.for_record(self.record, NOW)
        self.assertTrue(gate.invoke('delete', self.calls.append, self.record))
        self.assertEqual(self.calls, [self.record])

    def test_denied_action_is_silent_noop(self):
        gate = ActionGate(evaluate(ago(300), NOW))
        self.assertFalse(gate.invoke('delete', self.calls.append, self.record))
        self.assertFalse(gate.invoke('revise', self.calls.append, self.record))
        self.assertEqual(self.calls, [])

    def test_unknown_action(self):
        gate = ActionGate(evaluate(NOW, NOW))
        with self.assertRaises(ValueError):
            gate.invoke('publish', self.calls.append, self.record)


class ActionTimersTestCase(SimpleTestCase):

    def setUp(self):
        self.now = [NOW]
        self.deleted = []
        self.revised = []

    def make(self, created_at, **kwargs):
        record = SimpleNamespace(pk='p1', status='pending', created_at=created_at)
        return ActionTimers(
            record,
            on_delete=self.deleted.append,
            on_open_revise_modal=self.revised.append,
            clock=lambda: self.now[0],
            **kwargs
        )

    def test_labels_count_down(self):
        timers = self.make(ago(175))
        self.assertEqual(timers.delete_label, 'Delete (2:05)')
        self.assertEqual(timers.revise_label, 'Revise (2:05)')
        self.assertEqual(timers.lock_message, '')

        self.now[0] = NOW + timedelta(seconds=125)
        timers.update()
        self.assertEqual(timers.delete_label, 'Delete expired')
        self.assertEqual(timers.lock_message, 'Locked')

    def test_actions_follow_the_gate(self):
        timers = self.make(ago(10))
        self.assertTrue(timers.delete())
        self.assertTrue(timers.revise())
        self.assertEqual(len(self.deleted), 1)
        self.assertEqual(len(self.revised), 1)

        # A stale click after expiry never reaches the callbacks
        self.now[0] = NOW + timedelta(seconds=600)
        timers.update()
        self.assertFalse(timers.delete())
        self.assertFalse(timers.revise())
        self.assertEqual(len(self.deleted), 1)
        self.assertEqual(len(self.revised), 1)

    def test_one_window_open(self):
        timers = self.make(ago(90), delete_window=60, revise_window=300)
        self.assertFalse(timers.delete())
        self.assertTrue(timers.revise())
        self.assertEqual(timers.lock_message, '')

    def test_approved_records_get_no_timers(self):
        record = SimpleNamespace(status='approved', created_at=NOW)
        self.assertIsNone(ActionTimers.for_record(record, print, print))

    def test_approved_dict_records_get_no_timers(self):
        record = {'id': 'p1', 'status': 'approved', 'createdAt': NOW.isoformat()}
        self.assertIsNone(ActionTimers.for_record(record, print, print))
        record['status'] = 'pending'
        timers = ActionTimers.for_record(record, print, print, clock=lambda: NOW)
        self.assertTrue(timers.gate.can_modify)

    def test_mount_ticks_until_unmounted(self):
        ticks = []
        enough = threading.Event()

        def on_change(_timers):
            ticks.append(1)
            if len(ticks) >= 4:
                enough.set()

        timers = self.make(NOW, on_change=on_change, interval=0.01)
        timers.mount()
        self.assertTrue(timers.mounted)
        self.assertTrue(enough.wait(2))
        timers.unmount()
        self.assertFalse(timers.mounted)

        seen = len(ticks)
        time.sleep(0.05)
        self.assertEqual(len(ticks), seen)

    def test_context_manager_unmounts(self):
        with self.make(NOW, interval=0.01) as timers:
            self.assertTrue(timers.mounted)
        self.assertFalse(timers.mounted)


class IntervalTickerTestCase(SimpleTestCase):

    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            IntervalTicker(0, lambda: None)

    def test_cancel_from_inside_tick(self):
        calls = []
        done = threading.Event()

        def tick():
            calls.append(1)
            ticker.cancel()
            done.set()

        ticker = IntervalTicker(0.01, tick)
        ticker.start()
        self.assertTrue(done.wait(2))
        time.sleep(0.05)
        self.assertEqual(calls, [1])
        self.assertFalse(ticker.running)

    def test_failing_callback_keeps_ticking(self):
        calls = []
        enough = threading.Event()

        def tick():
            calls.append(1)
            if len(calls) >= 2:
                enough.set()
            raise RuntimeError('boom')

        with self.assertLogs('apps.papers.timers', level='ERROR'):
            with IntervalTicker(0.01, tick):
                self.assertTrue(enough.wait(2))


class TextHelpersTestCase(SimpleTestCase):

    def test_clean_title(self):
        self.assertEqual(clean_title('Deep Deep Learning'), 'Deep Learning')
        self.assertEqual(clean_title('  Spaced   out  title '), 'Spaced out title')
        self.assertEqual(clean_title(''), '')

    def test_format_abstract(self):
        self.assertEqual(
            format_abstract('Line one.\n\nNext  line.Another'),
            'Line one. Next line. Another'
        )
        self.assertEqual(format_abstract(''), 'No abstract provided.')

    def test_normalize_list(self):
        self.assertEqual(normalize_list(' a, ,b ,'), ['a', 'b'])
        self.assertEqual(normalize_list([' x ', '', 3]), ['x', '3'])
        self.assertEqual(normalize_list(None), [])

    def test_normalize_type(self):
        self.assertEqual(normalize_type('', 'approved'), 'final')
        self.assertEqual(normalize_type('', 'pending'), 'draft')
        self.assertEqual(normalize_type('final', 'pending'), 'final')


class PaperApiTestCase(APITestCase):
    """Shared fixtures for API tests."""

    def setUp(self):
        self.student = User.objects.create_user(
            username='student1', email='s1@test.com', password='pass12345'
        )
        self.other = User.objects.create_user(
            username='student2', email='s2@test.com', password='pass12345'
        )
        self.faculty = User.objects.create_user(
            username='faculty1', email='f1@test.com', password='pass12345',
            role='faculty'
        )

    def paper(self, seconds_ago=0, **kwargs):
        kwargs.setdefault('student', self.student)
        kwargs.setdefault('title', 'Solar Drying of Cassava Chips')
        return ResearchPaper.objects.create(
            created_at=timezone.now() - timedelta(seconds=seconds_ago),
            **kwargs
        )


class AuthenticationTestCase(APITestCase):
    """Test authentication flows."""

    def test_user_registration(self):
        data = {
            'username': 'testuser',
            'email': 'test@example.com',
            'password': 'securepass123',
            'first_name': 'Test',
            'last_name': 'User'
        }
        response = self.client.post('/api/auth/register/', data)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('token', response.data)
        self.assertEqual(response.data['role'], 'student')
        self.assertTrue(User.objects.filter(username='testuser').exists())

    def test_user_login(self):
        User.objects.create_user(
            username='testuser', email='test@example.com', password='testpass123'
        )
        data = {'username': 'testuser', 'password': 'testpass123'}
        response = self.client.post('/api/auth/login/', data)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)

    def test_login_rejects_bad_password(self):
        User.objects.create_user(username='testuser', password='testpass123')
        response = self.client.post(
            '/api/auth/login/', {'username': 'testuser', 'password': 'nope'}
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UploadTestCase(PaperApiTestCase):

    def test_upload_starts_both_windows(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post('/api/student/upload/', {
            'title': 'Mobile Learning Adoption',
            'abstract': 'A survey.',
            'keywords': 'education,  mobile learning, ',
            'co_authors': ['Bob Smith'],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['submission_type'], 'draft')
        self.assertEqual(response.data['keywords'], ['education', 'mobile learning'])
        self.assertEqual(response.data['co_authors'], ['Bob Smith'])
        self.assertIn(response.data['delete_remaining'], (299, 300))
        self.assertTrue(response.data['can_delete'])
        self.assertTrue(response.data['can_revise'])
        self.assertFalse(response.data['locked'])

        paper = ResearchPaper.objects.get(pk=response.data['id'])
        self.assertEqual(paper.student, self.student)

    def test_client_cannot_choose_status(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post('/api/student/upload/', {
            'title': 'Sneaky', 'status': 'approved',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')

    def test_title_required(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post('/api/student/upload/', {'title': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_faculty_cannot_upload_as_student(self):
        self.client.force_authenticate(user=self.faculty)
        response = self.client.post('/api/student/upload/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_requires_authentication(self):
        response = self.client.post('/api/student/upload/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class MyResearchTestCase(PaperApiTestCase):

    def test_lists_only_own_papers_with_window_state(self):
        fresh = self.paper(seconds_ago=5)
        old = self.paper(seconds_ago=600, title='Old')
        self.paper(student=self.other, title='Not mine')

        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/student/my-research/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        rows = {row['id']: row for row in response.data['results']}
        self.assertEqual(set(rows), {str(fresh.id), str(old.id)})
        self.assertTrue(rows[str(fresh.id)]['can_delete'])
        self.assertTrue(rows[str(old.id)]['locked'])
        self.assertEqual(rows[str(old.id)]['delete_countdown'], '0:00')
        self.assertEqual(rows[str(old.id)]['revise_remaining'], 0)

    def test_approved_paper_reports_locked(self):
        self.paper(seconds_ago=1, status='approved')
        self.client.force_authenticate(user=self.student)
        row = self.client.get('/api/student/my-research/').data['results'][0]
        self.assertTrue(row['locked'])
        self.assertEqual(row['submission_type'], 'final')


class DeleteWindowTestCase(PaperApiTestCase):

    def test_delete_inside_window(self):
        paper = self.paper(seconds_ago=30)
        self.client.force_authenticate(user=self.student)
        response = self.client.delete(f'/api/student/delete/{paper.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ResearchPaper.objects.filter(pk=paper.id).exists())

    def test_server_rejects_late_delete(self):
        paper = self.paper(seconds_ago=301)
        self.client.force_authenticate(user=self.student)
        response = self.client.delete(f'/api/student/delete/{paper.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('within 5 minutes', response.data['error'])
        self.assertTrue(ResearchPaper.objects.filter(pk=paper.id).exists())

    @override_settings(PAPER_DELETE_WINDOW_SECONDS=30)
    def test_sub_minute_window_message_uses_seconds(self):
        paper = self.paper(seconds_ago=45)
        self.client.force_authenticate(user=self.student)
        response = self.client.delete(f'/api/student/delete/{paper.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('within 30 seconds', response.data['error'])

    def test_cannot_delete_approved_paper(self):
        paper = self.paper(seconds_ago=10, status='approved')
        self.client.force_authenticate(user=self.student)
        response = self.client.delete(f'/api/student/delete/{paper.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('Approved', response.data['error'])

    def test_cannot_delete_other_students_paper(self):
        paper = self.paper(seconds_ago=10)
        self.client.force_authenticate(user=self.other)
        response = self.client.delete(f'/api/student/delete/{paper.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(ResearchPaper.objects.filter(pk=paper.id).exists())

    def test_unknown_paper(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.delete(
            '/api/student/delete/00000000-0000-0000-0000-000000000000/'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ReviseWindowTestCase(PaperApiTestCase):

    def test_revise_inside_window(self):
        paper = self.paper(seconds_ago=60, status='rejected', faculty_comment='Too short')
        created_at = paper.created_at
        self.client.force_authenticate(user=self.student)
        response = self.client.put(f'/api/student/revise/{paper.id}/', {
            'title': 'Solar Drying of Cassava Chips (revised)',
            'keywords': 'solar, drying',
            'submission_type': 'final',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        paper.refresh_from_db()
        self.assertEqual(paper.title, 'Solar Drying of Cassava Chips (revised)')
        self.assertEqual(paper.keywords, ['solar', 'drying'])
        self.assertEqual(paper.submission_type, 'final')
        # Revisions go back into the review queue
        self.assertEqual(paper.status, 'pending')
        self.assertEqual(paper.faculty_comment, '')
        self.assertEqual(paper.created_at, created_at)

    def test_server_rejects_late_revision(self):
        paper = self.paper(seconds_ago=300)
        self.client.force_authenticate(user=self.student)
        response = self.client.put(
            f'/api/student/revise/{paper.id}/', {'title': 'Late'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            response.data['error'],
            'You can only revise within 5 minutes after uploading.'
        )
        paper.refresh_from_db()
        self.assertNotEqual(paper.title, 'Late')

    @override_settings(PAPER_DELETE_WINDOW_SECONDS=60, PAPER_REVISE_WINDOW_SECONDS=600)
    def test_windows_are_checked_independently(self):
        paper = self.paper(seconds_ago=120)
        self.client.force_authenticate(user=self.student)

        response = self.client.delete(f'/api/student/delete/{paper.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('within 1 minute ', response.data['error'])

        response = self.client.put(
            f'/api/student/revise/{paper.id}/', {'abstract': 'Updated'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['can_delete'])
        self.assertTrue(response.data['can_revise'])


class ReviewTestCase(PaperApiTestCase):

    def test_faculty_approves(self):
        paper = self.paper(seconds_ago=10)
        self.client.force_authenticate(user=self.faculty)
        response = self.client.put(f'/api/faculty/review/{paper.id}/', {
            'decision': 'approved', 'comment': 'Well done',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['locked'])
        paper.refresh_from_db()
        self.assertEqual(paper.status, 'approved')
        self.assertEqual(paper.submission_type, 'final')
        self.assertEqual(paper.faculty_comment, 'Well done')
        self.assertEqual(paper.reviewed_by, self.faculty)

    def test_rejection_keeps_student_type(self):
        paper = self.paper(submission_type='draft')
        ReviewService().review(paper, self.faculty, 'rejected', 'Needs citations')
        paper.refresh_from_db()
        self.assertEqual(paper.status, 'rejected')
        self.assertEqual(paper.submission_type, 'draft')

    def test_invalid_decision(self):
        paper = self.paper()
        self.client.force_authenticate(user=self.faculty)
        response = self.client.put(
            f'/api/faculty/review/{paper.id}/', {'decision': 'maybe'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        with self.assertRaises(ValueError):
            ReviewService().review(paper, self.faculty, 'maybe')

    def test_students_cannot_review(self):
        paper = self.paper()
        self.client.force_authenticate(user=self.student)
        response = self.client.put(
            f'/api/faculty/review/{paper.id}/', {'decision': 'approved'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_review_queue_filters_by_status(self):
        pending = self.paper()
        self.paper(title='Done', status='approved')
        self.client.force_authenticate(user=self.faculty)
        response = self.client.get('/api/faculty/student-submissions/?status=pending')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(pending.id)])


class ResearchRepositoryTestCase(PaperApiTestCase):

    def setUp(self):
        super().setUp()
        self.solar = self.paper(
            status='approved', keywords=['solar energy'], year=2025,
            author='Alice Johnson'
        )
        self.water = self.paper(
            title='Water Quality Index', status='approved', submission_type='draft',
            co_authors=['Bob Smith']
        )
        self.pending = self.paper(title='Solar Pending')
        self.client.force_authenticate(user=self.other)

    def test_only_approved_papers_listed(self):
        response = self.client.get('/api/research/')
        ids = {row['id'] for row in response.data['results']}
        self.assertEqual(ids, {str(self.solar.id), str(self.water.id)})

    def test_search_across_fields(self):
        for query, expected in [
            ('SOLAR', self.solar),
            ('2025', self.solar),
            ('bob smith', self.water),
            ('quality', self.water),
        ]:
            response = self.client.get('/api/research/', {'q': query})
            ids = [row['id'] for row in response.data['results']]
            self.assertEqual(ids, [str(expected.id)], query)

    def test_filter_by_type(self):
        response = self.client.get('/api/research/', {'type': 'draft'})
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.water.id)])

    def test_search_and_type_combine(self):
        response = self.client.get('/api/research/', {'q': 'solar', 'type': 'final'})
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.solar.id)])

        response = self.client.get('/api/research/', {'q': 'solar', 'type': 'draft'})
        self.assertEqual(response.data['results'], [])

    def test_filtering_stays_in_the_database(self):
        view = ResearchListView()
        view.request = SimpleNamespace(user=self.other, query_params={'q': '2025', 'type': 'final'})
        papers = view.get_queryset()
        self.assertIsInstance(papers, QuerySet)
        self.assertEqual(list(papers), [self.solar])

    def test_restricted_papers_are_hidden(self):
        private_mine = self.paper(
            title='Shared With Me', status='approved', visibility='private',
            allowed_viewers=['s2@test.com']
        )
        self.paper(
            title='Shared With Others', status='approved', visibility='private',
            allowed_viewers=['xs2@test.com']
        )
        self.paper(
            title='Still Embargoed', status='approved', visibility='embargo',
            embargo_until=timezone.now() + timedelta(days=30)
        )
        released = self.paper(
            title='Embargo Lifted', status='approved', visibility='embargo',
            embargo_until=timezone.now() - timedelta(days=1)
        )

        response = self.client.get('/api/research/')
        titles = {row['title'] for row in response.data['results']}
        self.assertIn(private_mine.title, titles)
        self.assertIn(released.title, titles)
        self.assertNotIn('Shared With Others', titles)
        self.assertNotIn('Still Embargoed', titles)

        staff = User.objects.create_user(username='staff1', password='pass12345', role='staff')
        self.client.force_authenticate(user=staff)
        response = self.client.get('/api/research/')
        self.assertEqual(response.data['count'], 6)

    def test_filter_by_category_and_genre(self):
        self.solar.categories = ['Engineering']
        self.solar.genre_tags = ['Thesis']
        self.solar.save()
        self.water.categories = ['Engineering Management']
        self.water.save()

        response = self.client.get('/api/research/', {'category': 'engineering'})
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.solar.id)])

        response = self.client.get('/api/research/', {'genre': 'Thesis'})
        self.assertEqual(response.data['count'], 1)

    def test_facets(self):
        self.solar.categories = ['Engineering']
        self.solar.genre_tags = ['Thesis']
        self.solar.save()
        self.water.categories = ['Engineering', 'Environment']
        self.water.save()
        self.paper(
            title='Hidden', status='approved', visibility='private',
            allowed_viewers=['nobody@test.com'], categories=['Secret']
        )

        response = self.client.get('/api/repository/facets/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['categories'], [
            {'name': 'Engineering', 'count': 2},
            {'name': 'Environment', 'count': 1},
        ])
        self.assertEqual(response.data['genreTags'], [{'name': 'Thesis', 'count': 1}])


class MeTestCase(PaperApiTestCase):

    def test_returns_current_user(self):
        self.client.force_authenticate(user=self.faculty)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'faculty1')
        self.assertEqual(response.data['role'], 'faculty')
        self.assertNotIn('password', response.data)

    def test_requires_authentication(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AdminUserManagementTestCase(PaperApiTestCase):

    def setUp(self):
        super().setUp()
        self.admin = User.objects.create_user(
            username='admin1', email='a1@test.com', password='pass12345', role='admin'
        )
        self.client.force_authenticate(user=self.admin)

    def test_list_users(self):
        response = self.client.get('/api/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 4)

        response = self.client.get('/api/admin/users/', {'role': 'faculty'})
        usernames = [row['username'] for row in response.data['results']]
        self.assertEqual(usernames, ['faculty1'])

    def test_create_user_with_role(self):
        response = self.client.post('/api/admin/create-user/', {
            'username': 'librarian',
            'email': 'lib@test.com',
            'password': 'pass12345',
            'role': 'staff',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='librarian')
        self.assertEqual(user.role, 'staff')
        self.assertTrue(user.check_password('pass12345'))
        self.assertNotIn('password', response.data)

    def test_create_rejects_short_password(self):
        response = self.client.post('/api/admin/create-user/', {
            'username': 'weak', 'password': 'short', 'role': 'student',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_role(self):
        response = self.client.put(
            f'/api/admin/users/{self.other.id}/role/', {'role': 'faculty'}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.other.refresh_from_db()
        self.assertEqual(self.other.role, 'faculty')

        response = self.client.put(
            f'/api/admin/users/{self.other.id}/role/', {'role': 'dean'}
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_demote_self(self):
        response = self.client.put(
            f'/api/admin/users/{self.admin.id}/role/', {'role': 'student'}
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_user(self):
        response = self.client.delete(f'/api/admin/users/{self.other.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.other.id).exists())

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/admin/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.id).exists())

    def test_non_admins_are_forbidden(self):
        for user in (self.student, self.faculty):
            self.client.force_authenticate(user=user)
            self.assertEqual(
                self.client.get('/api/admin/users/').status_code,
                status.HTTP_403_FORBIDDEN
            )
            self.assertEqual(
                self.client.delete(f'/api/admin/users/{self.other.id}/').status_code,
                status.HTTP_403_FORBIDDEN
            )
        self.assertTrue(User.objects.filter(pk=self.other.id).exists())


class PublishingTestCase(PaperApiTestCase):

    def setUp(self):
        super().setUp()
        self.staff = User.objects.create_user(
            username='staff1', email='st1@test.com', password='pass12345', role='staff'
        )
        self.approved = self.paper(status='approved', year=2024)
        self.pending = self.paper(title='Under Review')
        self.client.force_authenticate(user=self.staff)

    def test_lists_approved_papers(self):
        response = self.client.get('/api/research-admin/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.approved.id)])
        self.assertIn('allowed_viewers', response.data['results'][0])

    def test_update_metadata_and_tags(self):
        response = self.client.put(
            f'/api/research-admin/{self.approved.id}/',
            {'categories': 'Engineering, Agriculture', 'genre_tags': ['Thesis'],
             'keywords': 'cassava,drying'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.approved.refresh_from_db()
        self.assertEqual(self.approved.categories, ['Engineering', 'Agriculture'])
        self.assertEqual(self.approved.genre_tags, ['Thesis'])
        self.assertEqual(self.approved.keywords, ['cassava', 'drying'])
        self.assertEqual(self.approved.year, 2024)

    def test_year_must_have_four_digits(self):
        response = self.client.put(
            f'/api/research-admin/{self.approved.id}/', {'year': 25}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unapproved_papers_are_not_published(self):
        response = self.client.get(f'/api/research-admin/{self.pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_private_needs_viewers(self):
        url = f'/api/research-admin/{self.approved.id}/visibility/'
        response = self.client.put(url, {'visibility': 'private'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('allowed_viewers', response.data)

        response = self.client.put(url, {
            'visibility': 'private', 'allowed_viewers': ['S2@Test.com'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.approved.refresh_from_db()
        self.assertEqual(self.approved.visibility, 'private')
        self.assertEqual(self.approved.allowed_viewers, ['s2@test.com'])

    def test_embargo_needs_date_and_public_clears_extras(self):
        url = f'/api/research-admin/{self.approved.id}/visibility/'
        response = self.client.put(url, {'visibility': 'embargo'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('embargo_until', response.data)

        release = (timezone.now() + timedelta(days=7)).isoformat()
        response = self.client.put(url, {'visibility': 'embargo', 'embargo_until': release}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.put(url, {
            'visibility': 'public', 'allowed_viewers': ['s2@test.com'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.approved.refresh_from_db()
        self.assertEqual(self.approved.visibility, 'public')
        self.assertEqual(self.approved.allowed_viewers, [])
        self.assertIsNone(self.approved.embargo_until)

    def test_students_and_faculty_cannot_publish(self):
        for user in (self.student, self.faculty):
            self.client.force_authenticate(user=user)
            response = self.client.put(
                f'/api/research-admin/{self.approved.id}/visibility/',
                {'visibility': 'public'}, format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.approved.refresh_from_db()
        self.assertEqual(self.approved.visibility, 'campus')


class ManagementCommandTestCase(TestCase):

    def setUp(self):
        self.student = User.objects.create_user(username='student1', password='pass12345')

    def run_command(self, *args):
        out = StringIO()
        call_command('paper_timers', *args, stdout=out, no_color=True)
        return out.getvalue()

    def test_shows_countdowns(self):
        ResearchPaper.objects.create(student=self.student, title='Fresh')
        ResearchPaper.objects.create(
            student=self.student, title='Old',
            created_at=timezone.now() - timedelta(hours=1)
        )
        ResearchPaper.objects.create(student=self.student, title='Published', status='approved')

        output = self.run_command('--username', 'student1')
        self.assertIn('Fresh: Delete (4:5', output)
        self.assertIn('Old: Locked', output)
        self.assertNotIn('Published', output)

    def test_watch_returns_when_everything_is_locked(self):
        ResearchPaper.objects.create(
            student=self.student, title='Old',
            created_at=timezone.now() - timedelta(hours=1)
        )
        output = self.run_command('--username', 'student1', '--watch', '--interval', '0.01')
        self.assertIn('Old: Locked', output)

    @override_settings(PAPER_DELETE_WINDOW_SECONDS=1, PAPER_REVISE_WINDOW_SECONDS=1)
    def test_watch_ticks_until_locked(self):
        ResearchPaper.objects.create(student=self.student, title='Short')
        output = self.run_command('--username', 'student1', '--watch', '--interval', '0.05')
        self.assertIn('Short: Delete (0:0', output)
        self.assertTrue(output.rstrip().endswith('Locked'))

    def test_unknown_user(self):
        from django.core.management.base import CommandError
        with self.assertRaises(CommandError):
            self.run_command('--username', 'ghost')

    def test_create_sample_data(self):
        out = StringIO()
        call_command('create_sample_data', stdout=out)
        self.assertEqual(ResearchPaper.objects.count(), 3)
        self.assertTrue(User.objects.filter(username='faculty1', role='faculty').exists())
        self.assertTrue(User.objects.filter(username='admin1', role='admin').exists())
