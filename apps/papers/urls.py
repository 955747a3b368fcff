from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    MeView,
    PaperUploadView,
    MyResearchView,
    PaperReviseView,
    PaperDeleteView,
    ResearchListView,
    RepositoryFacetsView,
    StudentSubmissionsView,
    ReviewView,
    ResearchAdminListView,
    ResearchAdminDetailView,
    ResearchVisibilityView,
    AdminUserListView,
    AdminUserCreateView,
    AdminUserDetailView,
    AdminUserRoleView,
)

urlpatterns = [
    # Authentication
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/me/', MeView.as_view(), name='me'),

    # Student submissions
    path('student/upload/', PaperUploadView.as_view(), name='paper-upload'),
    path('student/my-research/', MyResearchView.as_view(), name='my-research'),
    path('student/revise/<uuid:pk>/', PaperReviseView.as_view(), name='paper-revise'),
    path('student/delete/<uuid:pk>/', PaperDeleteView.as_view(), name='paper-delete'),

    # Repository
    path('research/', ResearchListView.as_view(), name='research-list'),
    path('repository/facets/', RepositoryFacetsView.as_view(), name='repository-facets'),

    # Faculty review
    path('faculty/student-submissions/', StudentSubmissionsView.as_view(), name='student-submissions'),
    path('faculty/review/<uuid:pk>/', ReviewView.as_view(), name='paper-review'),

    # Staff publishing
    path('research-admin/', ResearchAdminListView.as_view(), name='research-admin-list'),
    path('research-admin/<uuid:pk>/', ResearchAdminDetailView.as_view(), name='research-admin-detail'),
    path('research-admin/<uuid:pk>/visibility/', ResearchVisibilityView.as_view(), name='research-visibility'),

    # Account administration
    path('admin/users/', AdminUserListView.as_view(), name='admin-users'),
    path('admin/create-user/', AdminUserCreateView.as_view(), name='admin-create-user'),
    path('admin/users/<int:pk>/', AdminUserDetailView.as_view(), name='admin-user-detail'),
    path('admin/users/<int:pk>/role/', AdminUserRoleView.as_view(), name='admin-user-role'),
]
