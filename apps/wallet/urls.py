from django.urls import path
from . import views

app_name = 'wallet'

urlpatterns = [
    path('balance/', views.balance, name='balance'),
    path('transactions/', views.transactions, name='transactions'),
    path('transactions/all/', views.all_transactions, name='all-transactions'),
    path('credit/', views.credit, name='credit'),
    path('debit/', views.debit, name='debit'),
    path('reconcile/<uuid:user_id>/', views.reconcile, name='reconcile'),
]
