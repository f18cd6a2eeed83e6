"""Seed base roles, demo users and the pool permissions."""

from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from access_control.discovery import ActionDiscoveryService
from access_control.grants import grant_service
from access_control.models import Permission
from authentication.managers import UserManager
from authentication.models import Role, UserType

BASE_ROLES = {
    "Developer": "Full access, including catalog maintenance.",
    "SuperAdmin": "Administers users, roles and permissions.",
    "Admin": "Tenant administrator.",
    "User": "Regular member.",
    "Staff": "Operational staff managing pools.",
}

DEMO_USERS = [
    ("developer", "developerpass", UserType.DEVELOPER),
    ("superadmin", "superadminpass", UserType.SUPER_ADMIN),
    ("staff", "staffpass", UserType.STAFF),
    ("member", "memberpass", UserType.USER),
]

POOL_PERMISSION_CATEGORY = "Pools"


def create_seed_roles() -> dict:
    """Create the base system roles if missing and return a name->Role map."""
    roles = {}
    for name, description in BASE_ROLES.items():
        role, _ = Role.objects.get_or_create(
            name=name, defaults={"description": description, "is_system_role": True}
        )
        roles[name] = role
    return roles


def create_demo_users(roles) -> dict:
    """Create one demo user per seeded user type, holding the matching role."""
    User = get_user_model()
    users = {}
    for username, password, user_type in DEMO_USERS:
        user, _ = User.objects.get_or_create(
            username=username,
            defaults={
                "full_name": username.title(),
                "user_type": user_type,
                "password_hash": UserManager.hash_password(password),
                "is_verified": True,
            },
        )
        user.roles.add(roles[user_type.label])
        users[username] = user
    return users


def grant_pool_permissions(roles, actor_id=None) -> list:
    """Activate the discovered pool permissions and grant them to Staff."""
    permissions = list(Permission.objects.filter(category=POOL_PERMISSION_CATEGORY))
    for permission in permissions:
        async_to_sync(grant_service.set_permission_active)(permission.id, True, actor_id)
    return async_to_sync(grant_service.assign_permissions_to_role)(
        roles["Staff"].id, [permission.id for permission in permissions], actor_id
    )


class Command(BaseCommand):
    """Management command to seed roles, demo users and pool permissions."""

    help = (
        "Seed base roles and demo users, run action discovery, then activate the pool "
        "permissions and grant them to Staff. Use --reset to clear demo users first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the demo users created by this command before seeding.",
        )

    def handle(self, *args, **options):
        if options.get("reset"):
            self._reset_seeded_data()

        self.stdout.write("Seeding roles and users...")
        roles = create_seed_roles()
        create_demo_users(roles)

        report = async_to_sync(ActionDiscoveryService().discover_and_register)()
        self.stdout.write(f"Discovery created {len(report.created)} action(s).")

        outcomes = grant_pool_permissions(roles)
        self.stdout.write(f"Granted {sum(o.success for o in outcomes)} pool permission(s) to Staff.")
        self.stdout.write(self.style.SUCCESS("RBAC seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove the demo users only; roles and the catalog are kept."""
        User = get_user_model()
        User.objects.filter(username__in=[username for username, _, _ in DEMO_USERS]).delete()
        self.stdout.write(self.style.WARNING("Demo users cleared."))
