from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Role, User


class Command(BaseCommand):
    help = "Create the super admin from SUPERADMIN_EMAIL / SUPERADMIN_PASSWORD if none exists."

    def handle(self, *args, **options):
        if User.objects.filter(role=Role.SUPERADMIN).exists():
            self.stdout.write("Super admin already exists.")
            return

        email = settings.SUPERADMIN_EMAIL
        password = settings.SUPERADMIN_PASSWORD
        if not email or not password:
            raise CommandError("SUPERADMIN_EMAIL and SUPERADMIN_PASSWORD must be set.")

        user = User.objects.create_superadmin(
            email=email,
            password=password,
            name=settings.SUPERADMIN_NAME,
        )
        self.stdout.write(self.style.SUCCESS(f"Super admin created: {user.email}"))
