from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, help_text="Product name", max_length=200)),
                ("description", models.TextField(help_text="Detailed product description")),
                ("price", models.DecimalField(decimal_places=2, help_text="Product price in the base currency", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("stock", models.PositiveIntegerField(default=1, help_text="Units available, at most 4 digits", validators=[django.core.validators.MaxValueValidator(9999)])),
                ("category", models.CharField(db_index=True, help_text="Catalog category, e.g. Laptop, Footwear, Camera", max_length=64)),
                ("ratings", models.FloatField(default=0)),
                ("num_of_reviews", models.PositiveIntegerField(default=0)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(blank=True, help_text="Administrator who created this product", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="products", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["category", "price"], name="product_category_price_idx"),
                    models.Index(fields=["ratings"], name="product_ratings_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductImage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.CharField(max_length=255)),
                ("url", models.CharField(max_length=500)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="images", to="products.product")),
            ],
            options={
                "ordering": ["position", "id"],
            },
        ),
    ]
