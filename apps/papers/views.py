import logging
from collections import Counter

from rest_framework import status, generics
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.authtoken.models import Token
from django.contrib.auth import authenticate
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .models import ResearchPaper, User
from .serializers import (
    UserRegistrationSerializer,
    UserSerializer,
    AdminUserCreateSerializer,
    RoleSerializer,
    PaperWriteSerializer,
    PaperSerializer,
    StaffPaperSerializer,
    PublishSerializer,
    VisibilitySerializer,
    ReviewSerializer,
)
from .permissions import IsAdmin, IsPaperOwner, IsPublisher, IsReviewer, IsStudent
from .review_service import ReviewService
from .text import normalize_list
from .windows import delete_window_seconds, revise_window_seconds, window_phrase

logger = logging.getLogger(__name__)


class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            # Generate token for auto-login
            token, _ = Token.objects.get_or_create(user=user)
            return Response({
                'user_id': user.id,
                'username': user.username,
                'email': user.email,
                'role': user.role,
                'token': token.key
            }, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        username = request.data.get('username')
        password = request.data.get('password')

        if not username or not password:
            return Response(
                {'error': 'Username and password required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user = authenticate(username=username, password=password)

        if user:
            token, _ = Token.objects.get_or_create(user=user)
            return Response({
                'token': token.key,
                'user_id': user.id,
                'username': user.username,
                'role': user.role,
            })

        return Response(
            {'error': 'Invalid credentials'},
            status=status.HTTP_401_UNAUTHORIZED
        )


class PaperUploadView(APIView):
    """
    Submit a new draft or final paper.

    Identity comes from request.user, never from the payload, and the
    creation timestamp is stamped here. Both windows start counting now.
    """
    permission_classes = [IsAuthenticated, IsStudent]

    @transaction.atomic
    def post(self, request):
        serializer = PaperWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        paper = serializer.save(
            student=request.user,
            status='pending',
            author=data.get('author') or request.user.get_full_name() or request.user.username,
            submission_type=data.get('submission_type') or 'draft',
            created_at=timezone.now(),
        )
        logger.info('Paper %s uploaded by %s', paper.pk, request.user.username)

        return Response(
            PaperSerializer(paper, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )


class MyResearchView(generics.ListAPIView):
    """
    List the student's own papers with live window state.
    Filters by request.user automatically (no user_id param).
    """
    permission_classes = [IsAuthenticated]
    serializer_class = PaperSerializer

    def get_queryset(self):
        return ResearchPaper.objects.filter(
            student=self.request.user
        ).select_related('student').order_by('-created_at')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        # One clock reading per response so every row agrees
        context['now'] = timezone.now()
        return context


class _OwnedPaperMutationView(APIView):
    """
    Shared lookup and window checks for student mutations.

    The client countdown is only a hint; this is the authoritative check
    against the server clock.
    """
    permission_classes = [IsAuthenticated, IsPaperOwner]

    def get_paper(self, request, pk):
        paper = get_object_or_404(
            ResearchPaper.objects.select_for_update(), pk=pk
        )
        self.check_object_permissions(request, paper)
        return paper

    def closed_response(self, paper, action):
        """Return an error Response when the action is not allowed, else None."""
        if paper.is_approved:
            return Response(
                {'error': 'Approved papers can no longer be changed.'},
                status=status.HTTP_403_FORBIDDEN
            )
        gate = paper.gate()
        if action == 'delete' and not gate.can_delete:
            message = (
                f'You can only delete a draft within '
                f'{window_phrase(delete_window_seconds())} after uploading.'
            )
        elif action == 'revise' and not gate.can_revise:
            message = (
                f'You can only revise within '
                f'{window_phrase(revise_window_seconds())} after uploading.'
            )
        else:
            return None
        logger.info('Rejected late %s of paper %s', action, paper.pk)
        return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


class PaperReviseView(_OwnedPaperMutationView):

    @transaction.atomic
    def put(self, request, pk):
        paper = self.get_paper(request, pk)
        denied = self.closed_response(paper, 'revise')
        if denied is not None:
            return denied

        serializer = PaperWriteSerializer(paper, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        # A revision goes back into the review queue
        paper = serializer.save(status='pending', faculty_comment='')
        logger.info('Paper %s revised by %s', paper.pk, request.user.username)

        return Response(PaperSerializer(paper, context={'request': request}).data)


class PaperDeleteView(_OwnedPaperMutationView):

    @transaction.atomic
    def delete(self, request, pk):
        paper = self.get_paper(request, pk)
        denied = self.closed_response(paper, 'delete')
        if denied is not None:
            return denied

        paper_id = paper.pk
        paper.delete()
        logger.info('Paper %s deleted by %s', paper_id, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


def visible_papers(user, now=None):
    """
    Approved papers the user may see in the repository.

    Staff and admins see everything. Everyone else sees public and campus
    papers, embargoed papers once the embargo has passed, and private papers
    that list their email.
    """
    papers = ResearchPaper.objects.filter(status='approved')
    if user.is_publisher:
        return papers
    now = now or timezone.now()
    visible = (
        Q(visibility__in=['public', 'campus'])
        | Q(visibility='embargo', embargo_until__lte=now)
        | Q(student=user)
    )
    if user.email:
        # JSON-quoted so "a@x.io" does not match "ba@x.io"
        visible |= Q(visibility='private', allowed_viewers__icontains=f'"{user.email.lower()}"')
    return papers.filter(visible)


def tag_filter(field, value):
    return Q(**{f'{field}__icontains': f'"{value}"'})


class ResearchListView(generics.ListAPIView):
    """
    Repository of approved papers.

    ?q= searches title, author, adviser, co-authors and keywords, plus year
    when it is numeric. ?type=draft|final narrows by submission type, with
    untyped papers counted as final once approved. ?category= and ?genre=
    match a single taxonomy entry.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = PaperSerializer

    def get_queryset(self):
        papers = visible_papers(self.request.user).select_related('student')
        params = self.request.query_params

        query = params.get('q', '').strip()
        if query:
            match = (
                Q(title__icontains=query)
                | Q(author__icontains=query)
                | Q(adviser__icontains=query)
                | Q(keywords__icontains=query)
                | Q(co_authors__icontains=query)
            )
            if query.isdigit() and len(query) <= 4:
                match |= Q(year=int(query))
            papers = papers.filter(match)

        submission_type = params.get('type', '').strip().lower()
        if submission_type:
            fallback = Q(submission_type='', status='approved')
            if submission_type != 'final':
                fallback = Q(submission_type='') & ~Q(status='approved')
            papers = papers.filter(Q(submission_type=submission_type) | fallback)

        category = params.get('category', '').strip()
        if category:
            papers = papers.filter(tag_filter('categories', category))
        genre = params.get('genre', '').strip()
        if genre:
            papers = papers.filter(tag_filter('genre_tags', genre))

        return papers.order_by('-created_at')


class RepositoryFacetsView(APIView):
    """Category and genre counts across the papers the user can see."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        categories = Counter()
        genres = Counter()
        for paper in visible_papers(request.user).only('categories', 'genre_tags'):
            categories.update(set(normalize_list(paper.categories)))
            genres.update(set(normalize_list(paper.genre_tags)))

        def as_list(counter):
            return [
                {'name': name, 'count': count}
                for name, count in sorted(counter.items(), key=lambda kv: (-kv[1], kv[0].lower()))
            ]

        return Response({
            'categories': as_list(categories),
            'genreTags': as_list(genres),
        })


class StudentSubmissionsView(generics.ListAPIView):
    """Review queue for faculty. ?status= filters by review status."""
    permission_classes = [IsAuthenticated, IsReviewer]
    serializer_class = PaperSerializer

    def get_queryset(self):
        papers = ResearchPaper.objects.filter(
            student__role='student'
        ).select_related('student').order_by('-created_at')

        paper_status = self.request.query_params.get('status')
        if paper_status:
            papers = papers.filter(status=paper_status)
        return papers


class ReviewView(APIView):
    permission_classes = [IsAuthenticated, IsReviewer]

    def put(self, request, pk):
        serializer = ReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        paper = get_object_or_404(ResearchPaper, pk=pk)
        data = serializer.validated_data
        paper = ReviewService().review(
            paper,
            request.user,
            data['decision'],
            comment=data.get('comment', ''),
            submission_type=data.get('submission_type'),
        )

        return Response(PaperSerializer(paper, context={'request': request}).data)


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class ResearchAdminListView(generics.ListAPIView):
    """Approved papers for staff to publish, whatever their visibility."""
    permission_classes = [IsAuthenticated, IsPublisher]
    serializer_class = StaffPaperSerializer

    def get_queryset(self):
        papers = ResearchPaper.objects.filter(
            status='approved'
        ).select_related('student').order_by('-created_at')

        visibility = self.request.query_params.get('visibility')
        if visibility:
            papers = papers.filter(visibility=visibility)
        return papers


class ResearchAdminDetailView(APIView):
    """
    Staff corrections to an approved paper's metadata and taxonomy.

    Only approved papers are published; anything still in review
    belongs to faculty.
    """
    permission_classes = [IsAuthenticated, IsPublisher]

    def get_paper(self, pk):
        return get_object_or_404(ResearchPaper, pk=pk, status='approved')

    def get(self, request, pk):
        paper = self.get_paper(pk)
        return Response(StaffPaperSerializer(paper, context={'request': request}).data)

    @transaction.atomic
    def put(self, request, pk):
        paper = self.get_paper(pk)
        serializer = PublishSerializer(paper, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        paper = serializer.save()
        logger.info('Paper %s metadata updated by %s', paper.pk, request.user.username)
        return Response(StaffPaperSerializer(paper, context={'request': request}).data)


class ResearchVisibilityView(APIView):
    permission_classes = [IsAuthenticated, IsPublisher]

    @transaction.atomic
    def put(self, request, pk):
        paper = get_object_or_404(ResearchPaper, pk=pk, status='approved')
        serializer = VisibilitySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        paper.visibility = data['visibility']
        paper.allowed_viewers = data['allowed_viewers']
        paper.embargo_until = data['embargo_until']
        paper.save(update_fields=['visibility', 'allowed_viewers', 'embargo_until', 'updated_at'])
        logger.info(
            'Paper %s visibility set to %s by %s',
            paper.pk, paper.visibility, request.user.username
        )
        return Response(StaffPaperSerializer(paper, context={'request': request}).data)


class AdminUserListView(generics.ListAPIView):
    """All accounts. ?role= narrows to one role."""
    permission_classes = [IsAuthenticated, IsAdmin]
    serializer_class = UserSerializer

    def get_queryset(self):
        users = User.objects.order_by('username')
        role = self.request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        return users


class AdminUserCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request):
        serializer = AdminUserCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.save()
        logger.info('User %s (%s) created by %s', user.username, user.role, request.user.username)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class AdminUserDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def delete(self, request, pk):
        user = get_object_or_404(User, pk=pk)
        if user.pk == request.user.pk:
            return Response(
                {'error': 'You cannot delete your own account.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        username = user.username
        user.delete()
        logger.info('User %s deleted by %s', username, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminUserRoleView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def put(self, request, pk):
        user = get_object_or_404(User, pk=pk)
        serializer = RoleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        role = serializer.validated_data['role']
        if user.pk == request.user.pk and role != 'admin' and not user.is_superuser:
            return Response(
                {'error': 'You cannot remove your own admin role.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user.role = role
        user.save(update_fields=['role'])
        logger.info('User %s role set to %s by %s', user.username, role, request.user.username)
        return Response(UserSerializer(user).data)
