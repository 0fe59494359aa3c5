"""
Payment app URLs: gateway callbacks and stuck payment resolution.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import webhook_views
from .views import StuckPaymentViewSet

app_name = 'payments'

router = DefaultRouter()
router.register(r'stuck', StuckPaymentViewSet, basename='stuck-payment')

urlpatterns = [
    path('callback/', webhook_views.payment_callback, name='payment-callback'),
    path('', include(router.urls)),
]
