from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    # Shop dashboards
    path('shop/stats/', views.shop_stats, name='shop-stats'),
    path('shop/summary/', views.shop_summary, name='shop-summary'),
]
