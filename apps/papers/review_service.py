"""
Faculty review workflow.

Review decisions are the only way a paper's status changes. Approval also
takes the paper out of the student's delete/revise windows for good.
"""
import logging

from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


class ReviewService:

    DECISIONS = ('approved', 'rejected')

    @transaction.atomic
    def review(self, paper, reviewer, decision, comment='', submission_type=None):
        """
        Record a decision on a paper.

        Approved papers become 'final' unless the reviewer says otherwise;
        a rejected paper keeps whatever type the student chose.
        """
        if decision not in self.DECISIONS:
            raise ValueError(f'Unknown review decision: {decision!r}')

        paper.status = decision
        paper.faculty_comment = comment or ''
        if submission_type:
            paper.submission_type = submission_type
        elif decision == 'approved':
            paper.submission_type = 'final'
        paper.reviewed_by = reviewer
        paper.reviewed_at = timezone.now()
        paper.save(update_fields=[
            'status', 'faculty_comment', 'submission_type',
            'reviewed_by', 'reviewed_at', 'updated_at',
        ])

        logger.info(
            'Paper %s %s by %s', paper.pk, decision, getattr(reviewer, 'username', reviewer)
        )
        return paper
