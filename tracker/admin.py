from django.contrib import admin, messages

from .models import ContestResult, ScheduleConfig, SolvedProblem, StudentProfile, SubmissionRecord
from .tasks import sync_student

admin.site.site_header = "Student Progress Tracker"
admin.site.site_title = "Progress Tracker Admin"
admin.site.index_title = "Administration"


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = (
        'name',
        'handle',
        'email',
        'current_rating',
        'max_rating',
        'rank',
        'last_submission_time',
        'reminder_count',
        'notifications_enabled',
        'last_synced_at',
    )
    list_filter = ('notifications_enabled', 'rank')
    search_fields = ('name', 'handle', 'email')
    readonly_fields = (
        'current_rating',
        'max_rating',
        'rank',
        'avatar',
        'last_synced_at',
        'last_submission_time',
        'created_at',
        'updated_at',
    )
    actions = ['sync_now']

    @admin.action(description="Sync selected students now")
    def sync_now(self, request, queryset):
        count = 0
        for student_id in queryset.values_list('id', flat=True):
            sync_student.delay(student_id)
            count += 1
        self.message_user(request, f"Queued sync for {count} students.", level=messages.SUCCESS)


@admin.register(ContestResult)
class ContestResultAdmin(admin.ModelAdmin):
    list_display = ('student', 'contest_id', 'contest_name', 'rank', 'old_rating', 'new_rating', 'rating_change')
    search_fields = ('student__handle', 'contest_name')
    raw_id_fields = ('student',)


@admin.register(SubmissionRecord)
class SubmissionRecordAdmin(admin.ModelAdmin):
    list_display = ('submission_id', 'student', 'problem_name', 'verdict', 'programming_language', 'creation_time_seconds')
    list_filter = ('verdict',)
    search_fields = ('student__handle', 'problem_name')
    raw_id_fields = ('student',)


@admin.register(SolvedProblem)
class SolvedProblemAdmin(admin.ModelAdmin):
    list_display = ('student', 'problem_name', 'problem_rating', 'solved_at', 'language')
    search_fields = ('student__handle', 'problem_name')
    raw_id_fields = ('student',)


@admin.register(ScheduleConfig)
class ScheduleConfigAdmin(admin.ModelAdmin):
    list_display = ('key', 'value', 'timezone', 'updated_at')
