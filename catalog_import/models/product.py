from decimal import Decimal

from django.db import models


class Product(models.Model):
    sku = models.CharField(max_length=64, unique=True)
    slug = models.SlugField(max_length=80, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    base_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0")
    )
    promo_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    pack_size = models.PositiveIntegerField(default=1)
    moq = models.PositiveIntegerField(default=1)
    tax_rate = models.DecimalField(
        max_digits=5, decimal_places=4, default=Decimal("0.20")
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sku"]

    def __str__(self):
        return f"{self.sku} - {self.name}"
