from rest_framework import permissions


class IsPaperOwner(permissions.BasePermission):
    """
    Only allow students to touch their own papers.

    Enforces data isolation at the permission layer,
    preventing horizontal privilege escalation.
    """
    message = 'You can only manage your own submissions.'

    def has_object_permission(self, request, view, obj):
        return obj.student_id == request.user.id


class IsStudent(permissions.BasePermission):
    message = 'Only students can submit papers.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == 'student'


class IsReviewer(permissions.BasePermission):
    """Faculty and admins review student submissions."""
    message = 'Only faculty can review submissions.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_reviewer


class IsPublisher(permissions.BasePermission):
    """Library staff publish approved papers; admins can too."""
    message = 'Only staff can publish papers.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_publisher


class IsAdmin(permissions.BasePermission):
    message = 'Only administrators can manage accounts.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_admin
