from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'orders'

# SimpleRouter: an API root view would shadow the list route on the empty prefix
router = SimpleRouter()
router.register(r'', views.OrderViewSet, basename='order')

urlpatterns = [
    # POST   /api/orders/                      - Place food order
    # GET    /api/orders/                      - Own / shop orders
    # GET    /api/orders/{id}/                 - Order details
    # POST   /api/orders/laundry/              - Place laundry order
    # POST   /api/orders/xerox/                - Place xerox order
    # POST   /api/orders/{id}/cancel/          - Cancel own pending order
    # POST   /api/orders/{id}/status/          - Change status (staff)
    # POST   /api/orders/{id}/complete/        - Complete and charge (staff)
    # POST   /api/orders/{id}/deliver-items/   - Mark items handed over (staff)
    # GET    /api/orders/{id}/pickup-qr/       - Pickup QR as PNG
    # POST   /api/orders/verify-pickup/        - Verify scanned QR (staff)
    # GET    /api/orders/shop/active/          - Kitchen queue (staff)
    path('', include(router.urls)),
]
