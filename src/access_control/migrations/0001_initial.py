import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _audit_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("created_by", models.UUIDField(blank=True, null=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("modified_by", models.UUIDField(blank=True, null=True)),
        ("is_deleted", models.BooleanField(db_index=True, default=False)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Action",
            fields=_audit_fields()
            + [
                ("is_active", models.BooleanField(default=True)),
                ("controller", models.CharField(max_length=100)),
                ("action", models.CharField(max_length=100)),
                ("http_method", models.CharField(max_length=10)),
                ("route", models.CharField(blank=True, max_length=500)),
                ("description", models.CharField(blank=True, max_length=500)),
            ],
            options={"ordering": ["controller", "action", "http_method"]},
        ),
        migrations.CreateModel(
            name="Permission",
            fields=_audit_fields()
            + [
                ("name", models.CharField(max_length=200)),
                ("category", models.CharField(blank=True, max_length=100)),
                ("description", models.CharField(blank=True, max_length=500)),
                ("is_active", models.BooleanField(default=False)),
                (
                    "action",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="permissions",
                        to="access_control.action",
                    ),
                ),
            ],
            options={"ordering": ["category", "name"]},
        ),
        migrations.CreateModel(
            name="PermissionAuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "action",
                    models.CharField(
                        choices=[("GRANT", "Grant"), ("REVOKE", "Revoke"), ("UPDATE", "Update")], max_length=20
                    ),
                ),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("USER_PERMISSION", "User Permission"),
                            ("ROLE_PERMISSION", "Role Permission"),
                            ("PERMISSION", "Permission"),
                        ],
                        max_length=30,
                    ),
                ),
                ("entity_id", models.UUIDField()),
                ("actor_id", models.UUIDField(blank=True, null=True)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="RolePermission",
            fields=_audit_fields()
            + [
                ("is_active", models.BooleanField(default=True)),
                (
                    "permission",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="role_grants",
                        to="access_control.permission",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="permission_grants",
                        to="authentication.role",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="UserPermission",
            fields=_audit_fields()
            + [
                ("is_active", models.BooleanField(default=True)),
                ("expires_on", models.DateTimeField(blank=True, null=True)),
                ("is_revoked", models.BooleanField(default=False)),
                ("revoked_on", models.DateTimeField(blank=True, null=True)),
                ("revoked_by", models.UUIDField(blank=True, null=True)),
                (
                    "permission",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="user_grants",
                        to="access_control.permission",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="permission_grants",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.AddConstraint(
            model_name="action",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_deleted", False)),
                fields=("controller", "action", "http_method"),
                name="uniq_live_action_triple",
            ),
        ),
        migrations.AddConstraint(
            model_name="permission",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_deleted", False)), fields=("name",), name="uniq_live_permission_name"
            ),
        ),
        migrations.AddConstraint(
            model_name="permission",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_deleted", False)), fields=("action",), name="uniq_live_permission_action"
            ),
        ),
        migrations.AddConstraint(
            model_name="rolepermission",
            constraint=models.UniqueConstraint(fields=("role", "permission"), name="uniq_role_permission"),
        ),
        migrations.AddConstraint(
            model_name="userpermission",
            constraint=models.UniqueConstraint(fields=("user", "permission"), name="uniq_user_permission"),
        ),
    ]
