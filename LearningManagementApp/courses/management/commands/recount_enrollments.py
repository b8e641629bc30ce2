from django.core.management.base import BaseCommand
from django.db.models import Count, Q

from LearningManagementApp.core.choices import EnrollmentStatus
from LearningManagementApp.courses.models import Course


class Command(BaseCommand):
    help = "Recompute the denormalized enrollment_count of every course from active enrollments."

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Report drift without writing.")

    def handle(self, *args, **options):
        updated = 0
        courses = Course.all_objects.annotate(
            active=Count("enrollments", filter=Q(enrollments__status=EnrollmentStatus.ACTIVE))
        )
        for course in courses:
            if course.enrollment_count != course.active:
                self.stdout.write(f"Course {course.pk}: {course.enrollment_count} -> {course.active}")
                if not options["dry_run"]:
                    Course.all_objects.filter(pk=course.pk).update(enrollment_count=course.active)
                updated += 1
        verb = "Would update" if options["dry_run"] else "Updated"
        self.stdout.write(self.style.SUCCESS(f"{verb} {updated} courses"))
