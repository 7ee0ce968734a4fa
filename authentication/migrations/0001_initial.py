import django.utils.timezone
from django.db import migrations, models

import authentication.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("name", models.CharField(help_text="Display name, 4-30 characters.", max_length=30)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("role", models.CharField(choices=[("customer", "Customer"), ("admin", "Admin")], db_index=True, default="customer", max_length=16)),
                ("avatar_public_id", models.CharField(blank=True, max_length=255)),
                ("avatar_url", models.CharField(blank=True, max_length=500)),
                ("reset_password_token", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("reset_password_expire", models.DateTimeField(blank=True, null=True)),
                ("version", models.PositiveIntegerField(default=1, help_text="Incremented on every profile write; stale writes are rejected.")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "ordering": ("-created_at",),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("reset_password_expire__isnull", True), ("reset_password_token__isnull", True)),
                            models.Q(("reset_password_expire__isnull", False), ("reset_password_token__isnull", False)),
                            _connector="OR",
                        ),
                        name="reset_token_and_expiry_together",
                    ),
                ],
            },
            managers=[
                ("objects", authentication.models.UserManager()),
            ],
        ),
    ]
