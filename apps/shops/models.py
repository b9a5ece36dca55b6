from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid


class ShopCategory(models.TextChoices):
    CANTEEN = 'canteen', 'Canteen'
    LAUNDRY = 'laundry', 'Laundry'
    XEROX = 'xerox', 'Xerox'
    OTHER = 'other', 'Other'


class Shop(models.Model):
    """A campus shop that accepts orders."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    category = models.CharField(max_length=20, choices=ShopCategory.choices)
    image_url = models.URLField(blank=True)
    contact_phone = models.CharField(max_length=15, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shops'
        ordering = ['name']
        indexes = [
            models.Index(fields=['category', 'is_active'], name='shops_category_active_idx'),
        ]

    def __str__(self):
        return self.name


class Category(models.Model):
    """Menu section within a shop (e.g. Snacks, Beverages)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shop = models.ForeignKey(Shop, on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=50)
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'menu_categories'
        ordering = ['sort_order', 'name']
        verbose_name_plural = 'categories'
        constraints = [
            models.UniqueConstraint(fields=['shop', 'name'], name='unique_category_per_shop'),
        ]

    def __str__(self):
        return f"{self.shop.name} / {self.name}"


class MenuItemQuerySet(models.QuerySet):
    def available(self):
        return self.filter(is_available=True)

    def active_offers(self, at=None):
        now = at or timezone.now()
        return self.filter(
            is_offer=True,
            offer_price__isnull=False,
        ).filter(
            models.Q(offer_start__isnull=True) | models.Q(offer_start__lte=now),
            models.Q(offer_end__isnull=True) | models.Q(offer_end__gte=now),
        )


class MenuItem(models.Model):
    """Orderable catalog item. Orders snapshot its name and price."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shop = models.ForeignKey(Shop, on_delete=models.CASCADE, related_name='menu_items')
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='items',
    )
    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    image_url = models.URLField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    cost_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
    )
    is_available = models.BooleanField(default=True)
    is_vegetarian = models.BooleanField(default=False)
    preparation_time = models.PositiveIntegerField(default=15, help_text='Minutes')

    # Offer
    is_offer = models.BooleanField(default=False)
    offer_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
    )
    offer_start = models.DateTimeField(null=True, blank=True)
    offer_end = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MenuItemQuerySet.as_manager()

    class Meta:
        db_table = 'menu_items'
        ordering = ['name']
        indexes = [
            models.Index(fields=['shop', 'is_available'], name='menu_shop_available_idx'),
            models.Index(fields=['shop', 'is_offer'], name='menu_shop_offer_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.shop.name})"

    def offer_active_at(self, at):
        if not self.is_offer or self.offer_price is None:
            return False
        if self.offer_start and at < self.offer_start:
            return False
        if self.offer_end and at > self.offer_end:
            return False
        return True

    @property
    def is_offer_active(self):
        return self.offer_active_at(timezone.now())

    def price_at(self, at):
        """Offer price while the offer window is open, list price otherwise."""
        if self.offer_active_at(at):
            return self.offer_price
        return self.price

    @property
    def effective_price(self):
        return self.price_at(timezone.now())
