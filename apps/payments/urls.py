from django.urls import path
from . import views

app_name = 'payments'

urlpatterns = [
    # Superadmin
    path('requests/', views.payment_requests, name='requests'),
    path('requests/<uuid:request_id>/', views.payment_request_detail, name='request-detail'),
    path('requests/<uuid:request_id>/close/', views.close_payment_request, name='request-close'),
    path('requests/<uuid:request_id>/students/', views.request_students, name='request-students'),
    path('requests/<uuid:request_id>/unpaid/', views.unpaid_students, name='request-unpaid'),

    # Student
    path('requests/<uuid:request_id>/pay/', views.pay_request, name='request-pay'),
    path('pending/', views.pending_payments, name='pending'),
    path('history/', views.payment_history, name='history'),
]
