"""
Management command deleting object store assets no record references.

Usage:
    python manage.py sweep_orphan_assets [--dry-run] [--min-age 60] [--folder products]

Asset replacement uploads new assets before the record is written and deletes
old ones after it commits, so an interrupted request can leave an asset
behind but never a record pointing at a missing asset. Run this command
periodically (cron, scheduled job) to reclaim those leftovers. Assets younger
than --min-age are skipped so uploads of requests still in flight survive.
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from assets.exceptions import ObjectStoreError
from assets.presets import MANAGED_FOLDERS
from assets.retry import best_effort
from assets.storage import get_object_store
from products.models import ProductImage


class Command(BaseCommand):
    help = 'Delete object store assets that no product image or user avatar references'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List orphaned assets without deleting them',
        )
        parser.add_argument(
            '--min-age',
            type=int,
            default=60,
            help='Only consider assets uploaded at least this many minutes ago (default: 60)',
        )
        parser.add_argument(
            '--folder',
            action='append',
            choices=MANAGED_FOLDERS,
            help='Folder to sweep (repeatable, default: all managed folders)',
        )

    def handle(self, *args, **options):
        store = get_object_store()
        referenced = set(ProductImage.objects.values_list('public_id', flat=True))
        referenced |= set(
            get_user_model().objects.exclude(avatar_public_id='').values_list('avatar_public_id', flat=True)
        )

        cutoff = timezone.now() - timedelta(minutes=options['min_age'])
        orphans = []
        for folder in options['folder'] or MANAGED_FOLDERS:
            try:
                orphans += [
                    public_id
                    for public_id, uploaded_at in store.list_assets(folder)
                    if public_id not in referenced and (uploaded_at is None or uploaded_at <= cutoff)
                ]
            except ObjectStoreError as e:
                self.stdout.write(self.style.ERROR(f'Could not list folder "{folder}": {e}'))

        if options['dry_run']:
            for public_id in orphans:
                self.stdout.write(public_id)
            self.stdout.write(self.style.WARNING(f'{len(orphans)} orphaned asset(s) found (dry run)'))
            return

        deleted = sum(1 for public_id in orphans if best_effort(store.delete, public_id))
        self.stdout.write(
            self.style.SUCCESS(f'Deleted {deleted} of {len(orphans)} orphaned asset(s)')
        )
