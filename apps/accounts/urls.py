from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Authentication
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),

    # User profile
    path('user/', views.get_current_user, name='current-user'),

    # Approvals
    path('approvals/', views.list_pending_approvals, name='pending-approvals'),
    path('approvals/<uuid:user_id>/approve/', views.approve_user, name='approve-user'),
    path('approvals/<uuid:user_id>/reject/', views.reject_user, name='reject-user'),
]
