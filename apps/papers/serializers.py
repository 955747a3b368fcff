import math

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.utils import timezone

from .models import ResearchPaper
from .text import clean_title, format_abstract, normalize_list, normalize_type
from .windows import ActionGate, format_countdown

User = get_user_model()


class UserRegistrationSerializer(serializers.ModelSerializer):
    """Student self-registration. Faculty and staff accounts are created by admins."""
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'password']

    def create(self, validated_data):
        user = User(
            username=validated_data['username'],
            email=validated_data.get('email', ''),
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            role='student',
        )
        user.set_password(validated_data['password'])
        user.save()
        return user


class CommaSeparatedListField(serializers.Field):
    """Takes either a JSON list or "a, b, c" and stores a trimmed list."""

    def to_internal_value(self, data):
        if not isinstance(data, (str, list, tuple)):
            raise serializers.ValidationError('Expected a list or a comma separated string.')
        return normalize_list(data)

    def to_representation(self, value):
        return normalize_list(value)


class PaperWriteSerializer(serializers.ModelSerializer):
    """
    Upload and revision payload.
    status, created_at and ownership are never taken from the client.
    """
    co_authors = CommaSeparatedListField(required=False)
    keywords = CommaSeparatedListField(required=False)
    submission_type = serializers.ChoiceField(
        choices=ResearchPaper.SUBMISSION_TYPES, required=False
    )

    class Meta:
        model = ResearchPaper
        fields = ['title', 'abstract', 'author', 'adviser', 'co_authors',
                  'keywords', 'year', 'submission_type']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required.')
        return value.strip()


class PaperSerializer(serializers.ModelSerializer):
    """
    Read view of a paper with its delete/revise window state.

    The window fields are computed against the server clock at response
    time; clients count down from them locally but the server re-checks
    on every mutation.
    """
    co_authors = CommaSeparatedListField(read_only=True)
    keywords = CommaSeparatedListField(read_only=True)
    categories = CommaSeparatedListField(read_only=True)
    genre_tags = CommaSeparatedListField(read_only=True)
    student_username = serializers.CharField(source='student.username', read_only=True)

    class Meta:
        model = ResearchPaper
        fields = ['id', 'title', 'abstract', 'author', 'adviser', 'co_authors',
                  'keywords', 'year', 'status', 'submission_type',
                  'faculty_comment', 'visibility', 'categories', 'genre_tags',
                  'student_username', 'created_at', 'updated_at', 'reviewed_at']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['submission_type'] = normalize_type(instance.submission_type, instance.status)
        data['display_title'] = clean_title(instance.title)
        data['display_abstract'] = format_abstract(instance.abstract)

        now = self.context.get('now') or timezone.now()
        state = instance.window_state(now)
        gate = ActionGate(state)
        data.update({
            'delete_remaining': int(math.floor(state.delete_remaining)),
            'revise_remaining': int(math.floor(state.revise_remaining)),
            'delete_countdown': format_countdown(state.delete_remaining),
            'revise_countdown': format_countdown(state.revise_remaining),
            'can_delete': gate.can_delete,
            'can_revise': gate.can_revise,
            'locked': gate.is_locked,
        })
        return data


class ReviewSerializer(serializers.Serializer):
    """Faculty decision payload."""
    decision = serializers.ChoiceField(choices=['approved', 'rejected'])
    comment = serializers.CharField(required=False, allow_blank=True, default='')
    submission_type = serializers.ChoiceField(
        choices=ResearchPaper.SUBMISSION_TYPES, required=False
    )


class StaffPaperSerializer(PaperSerializer):
    """Publishing view; also exposes who may see a private paper."""

    class Meta(PaperSerializer.Meta):
        fields = PaperSerializer.Meta.fields + ['allowed_viewers', 'embargo_until']


class PublishSerializer(serializers.ModelSerializer):
    """Metadata and taxonomy staff may correct before publishing."""
    co_authors = CommaSeparatedListField(required=False)
    keywords = CommaSeparatedListField(required=False)
    categories = CommaSeparatedListField(required=False)
    genre_tags = CommaSeparatedListField(required=False)

    class Meta:
        model = ResearchPaper
        fields = ['title', 'author', 'adviser', 'co_authors', 'year',
                  'keywords', 'categories', 'genre_tags']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required.')
        return value.strip()

    def validate_year(self, value):
        if value is not None and not 1000 <= value <= 9999:
            raise serializers.ValidationError('Year should be a 4-digit value like 2025.')
        return value


class VisibilitySerializer(serializers.Serializer):
    """
    Who can see a published paper.

    private needs at least one allowed viewer, embargo needs a release
    date. Switching away from either clears its extra data.
    """
    visibility = serializers.ChoiceField(choices=ResearchPaper.VISIBILITY_CHOICES)
    allowed_viewers = serializers.ListField(
        child=serializers.EmailField(), required=False, default=list
    )
    embargo_until = serializers.DateTimeField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        visibility = attrs['visibility']
        if visibility == 'private':
            if not attrs['allowed_viewers']:
                raise serializers.ValidationError(
                    {'allowed_viewers': 'Provide at least one allowed viewer for private papers.'}
                )
        else:
            attrs['allowed_viewers'] = []

        if visibility == 'embargo':
            if attrs['embargo_until'] is None:
                raise serializers.ValidationError(
                    {'embargo_until': 'An embargo needs a release date.'}
                )
        else:
            attrs['embargo_until'] = None

        attrs['allowed_viewers'] = sorted({e.strip().lower() for e in attrs['allowed_viewers']})
        return attrs


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name',
                  'role', 'is_active', 'created_at']
        read_only_fields = fields


class AdminUserCreateSerializer(serializers.ModelSerializer):
    """Admins create accounts for any role."""
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default='student')

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'role', 'password']

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class RoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
