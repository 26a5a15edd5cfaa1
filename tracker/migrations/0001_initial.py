import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ScheduleConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=100, unique=True)),
                ('value', models.CharField(max_length=100)),
                ('timezone', models.CharField(blank=True, default='', max_length=64)),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Schedule Config',
                'verbose_name_plural': 'Schedule Config',
            },
        ),
        migrations.CreateModel(
            name='StudentProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('phone_number', models.CharField(blank=True, default='', max_length=30)),
                ('handle', models.CharField(max_length=50, unique=True)),
                ('current_rating', models.IntegerField(default=0)),
                ('max_rating', models.IntegerField(default=0)),
                ('rank', models.CharField(default='Unrated', max_length=50)),
                ('avatar', models.URLField(blank=True, default='', max_length=500)),
                ('last_synced_at', models.DateTimeField(blank=True, null=True)),
                ('last_submission_time', models.DateTimeField(blank=True, null=True)),
                ('reminder_count', models.PositiveIntegerField(default=0)),
                ('notifications_enabled', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Student Profile',
                'verbose_name_plural': 'Student Profiles',
                'ordering': ['name'],
                'indexes': [
                    models.Index(
                        fields=['notifications_enabled', 'last_submission_time'],
                        name='student_inactivity_idx',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContestResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('contest_id', models.IntegerField()),
                ('contest_name', models.CharField(max_length=255)),
                ('rank', models.PositiveIntegerField()),
                ('old_rating', models.IntegerField()),
                ('new_rating', models.IntegerField()),
                ('rating_change', models.IntegerField()),
                ('rating_update_time_seconds', models.BigIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('student', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='contest_results',
                    to='tracker.studentprofile',
                )),
            ],
            options={
                'verbose_name': 'Contest Result',
                'verbose_name_plural': 'Contest Results',
                'ordering': ['-rating_update_time_seconds'],
                'constraints': [
                    models.UniqueConstraint(
                        fields=('student', 'contest_id'),
                        name='contest_result_student_contest_uniq',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='SubmissionRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('submission_id', models.BigIntegerField(unique=True)),
                ('contest_id', models.IntegerField(default=0)),
                ('problem_contest_id', models.IntegerField(blank=True, null=True)),
                ('problem_index', models.CharField(blank=True, default='', max_length=10)),
                ('problem_name', models.CharField(blank=True, default='', max_length=255)),
                ('problem_type', models.CharField(blank=True, default='', max_length=30)),
                ('problem_points', models.FloatField(blank=True, null=True)),
                ('problem_rating', models.IntegerField(blank=True, null=True)),
                ('tags', models.CharField(blank=True, default='', max_length=500)),
                ('author', models.CharField(default='Unknown', max_length=100)),
                ('programming_language', models.CharField(max_length=100)),
                ('verdict', models.CharField(max_length=50)),
                ('testset', models.CharField(default='TESTS', max_length=30)),
                ('passed_test_count', models.IntegerField(default=0)),
                ('time_consumed_millis', models.IntegerField(default=0)),
                ('memory_consumed_bytes', models.BigIntegerField(default=0)),
                ('creation_time_seconds', models.BigIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('student', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='submissions',
                    to='tracker.studentprofile',
                )),
            ],
            options={
                'verbose_name': 'Submission',
                'verbose_name_plural': 'Submissions',
                'ordering': ['-creation_time_seconds'],
                'indexes': [
                    models.Index(
                        fields=['student', '-creation_time_seconds'],
                        name='submission_student_time_idx',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='SolvedProblem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('problem_name', models.CharField(max_length=255)),
                ('problem_rating', models.IntegerField(default=0)),
                ('tags', models.CharField(blank=True, default='', max_length=500)),
                ('solved_at', models.DateTimeField()),
                ('language', models.CharField(blank=True, default='', max_length=100)),
                ('verdict', models.CharField(default='OK', max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('student', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='solved_problems',
                    to='tracker.studentprofile',
                )),
            ],
            options={
                'verbose_name': 'Solved Problem',
                'verbose_name_plural': 'Solved Problems',
                'ordering': ['-solved_at'],
                'indexes': [
                    models.Index(
                        fields=['student', '-solved_at'],
                        name='solved_student_time_idx',
                    ),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        fields=('student', 'problem_name'),
                        name='solved_problem_student_name_uniq',
                    ),
                ],
            },
        ),
    ]
