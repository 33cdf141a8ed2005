# apps/schedulingapp/management/commands/create_test_event.py
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.schedulingapp.models import Event
from apps.schedulingapp.services.scheduling_service import SchedulingService
from core.exceptions import ValidationException


class Command(BaseCommand):
    help = "Create a sample event starting tomorrow and print its endpoints"

    def add_arguments(self, parser):
        parser.add_argument("--title", default="Test scheduling poll", help="Event title")
        parser.add_argument("--days", type=int, default=7, help="Number of days in the window")
        parser.add_argument("--start-hour", type=int, default=9, help="First slot hour")
        parser.add_argument("--end-hour", type=int, default=18, help="Hour after the last slot")
        parser.add_argument("--duration", type=int, default=60, help="Meeting length in minutes")
        parser.add_argument(
            "--show-slots", action="store_true", help="List every generated slot id"
        )

    def handle(self, *args, **options):
        start_date = timezone.localdate() + timedelta(days=1)
        end_date = start_date + timedelta(days=max(options["days"], 1) - 1)

        try:
            slot_ids = SchedulingService.validate_window(
                start_date,
                end_date,
                options["start_hour"],
                options["end_hour"],
                options["duration"],
            )
        except ValidationException as e:
            raise CommandError(str(e.message))

        event = Event.objects.create(
            title=options["title"],
            description="Sample event for checking the participant flow.",
            start_date=start_date,
            end_date=end_date,
            start_hour=options["start_hour"],
            end_hour=options["end_hour"],
            duration_minutes=options["duration"],
            created_by="test_user",
        )

        self.stdout.write(self.style.SUCCESS(f"Created event {event.id}"))
        self.stdout.write(f"  Title:  {event.title}")
        self.stdout.write(f"  Dates:  {start_date} - {end_date}")
        self.stdout.write(f"  Hours:  {options['start_hour']:02d}:00 - {options['end_hour']:02d}:00")
        self.stdout.write(f"  Slots:  {len(slot_ids)}")
        self.stdout.write("")
        self.stdout.write(f"  Participants:     /api/v1/events/{event.id}/participants/")
        self.stdout.write(f"  Analysis:         /api/v1/events/{event.id}/analysis/")
        self.stdout.write(f"  Recommendations:  /api/v1/events/{event.id}/recommendations/")

        if options["show_slots"]:
            for slot_id in slot_ids:
                self.stdout.write(f"    {slot_id}")
