from django.db import models


class StudentProfile(models.Model):
    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=30, blank=True, default='')

    # Codeforces handle, stored lowercase
    handle = models.CharField(max_length=50, unique=True)

    # Cached metrics (written by the sync engine)
    current_rating = models.IntegerField(default=0)
    max_rating = models.IntegerField(default=0)
    rank = models.CharField(max_length=50, default='Unrated')
    avatar = models.URLField(max_length=500, blank=True, default='')
    last_synced_at = models.DateTimeField(null=True, blank=True)
    last_submission_time = models.DateTimeField(null=True, blank=True)

    # Inactivity reminders
    reminder_count = models.PositiveIntegerField(default=0)
    notifications_enabled = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        indexes = [
            models.Index(fields=['notifications_enabled', 'last_submission_time'], name='student_inactivity_idx'),
        ]
        verbose_name = "Student Profile"
        verbose_name_plural = "Student Profiles"

    def save(self, *args, **kwargs):
        if self.handle:
            self.handle = self.handle.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.handle})"


class ContestResult(models.Model):
    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='contest_results')
    contest_id = models.IntegerField()
    contest_name = models.CharField(max_length=255)
    rank = models.PositiveIntegerField()
    old_rating = models.IntegerField()
    new_rating = models.IntegerField()
    rating_change = models.IntegerField()
    rating_update_time_seconds = models.BigIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-rating_update_time_seconds']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'contest_id'],
                name='contest_result_student_contest_uniq',
            ),
        ]
        verbose_name = "Contest Result"
        verbose_name_plural = "Contest Results"

    def __str__(self):
        return f"{self.student.handle} - {self.contest_name} ({self.rating_change:+d})"


class SubmissionRecord(models.Model):
    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='submissions')
    submission_id = models.BigIntegerField(unique=True)
    contest_id = models.IntegerField(default=0)

    # Problem metadata
    problem_contest_id = models.IntegerField(null=True, blank=True)
    problem_index = models.CharField(max_length=10, blank=True, default='')
    problem_name = models.CharField(max_length=255, blank=True, default='')
    problem_type = models.CharField(max_length=30, blank=True, default='')
    problem_points = models.FloatField(null=True, blank=True)
    problem_rating = models.IntegerField(null=True, blank=True)
    tags = models.CharField(max_length=500, blank=True, default='')

    author = models.CharField(max_length=100, default='Unknown')
    programming_language = models.CharField(max_length=100)
    verdict = models.CharField(max_length=50)
    testset = models.CharField(max_length=30, default='TESTS')
    passed_test_count = models.IntegerField(default=0)
    time_consumed_millis = models.IntegerField(default=0)
    memory_consumed_bytes = models.BigIntegerField(default=0)
    creation_time_seconds = models.BigIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-creation_time_seconds']
        indexes = [
            models.Index(fields=['student', '-creation_time_seconds'], name='submission_student_time_idx'),
        ]
        verbose_name = "Submission"
        verbose_name_plural = "Submissions"

    def __str__(self):
        return f"{self.student.handle} #{self.submission_id} {self.problem_name} ({self.verdict})"


class SolvedProblem(models.Model):
    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='solved_problems')
    problem_name = models.CharField(max_length=255)
    problem_rating = models.IntegerField(default=0)
    tags = models.CharField(max_length=500, blank=True, default='')
    solved_at = models.DateTimeField()
    language = models.CharField(max_length=100, blank=True, default='')
    verdict = models.CharField(max_length=50, default='OK')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-solved_at']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'problem_name'],
                name='solved_problem_student_name_uniq',
            ),
        ]
        indexes = [
            models.Index(fields=['student', '-solved_at'], name='solved_student_time_idx'),
        ]
        verbose_name = "Solved Problem"
        verbose_name_plural = "Solved Problems"

    def __str__(self):
        return f"{self.student.handle} - {self.problem_name}"


class ScheduleConfig(models.Model):
    DAILY_SYNC_KEY = 'dailySyncCronTime'

    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=100)
    timezone = models.CharField(max_length=64, blank=True, default='')
    description = models.CharField(max_length=255, blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Schedule Config"
        verbose_name_plural = "Schedule Config"

    def __str__(self):
        return f"{self.key} = {self.value} ({self.timezone or 'default tz'})"
