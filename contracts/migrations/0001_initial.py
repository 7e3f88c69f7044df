import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Contract',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('facility', models.CharField(blank=True, default='', max_length=200)),
                ('role', models.CharField(blank=True, default='', max_length=200)),
                ('start_date', models.DateField(help_text='First date of the contract (inclusive)')),
                ('end_date', models.DateField(help_text='Last date of the contract (inclusive)')),
                ('timezone', models.CharField(help_text="IANA time zone the schedule's clock times are read in", max_length=64)),
                ('base_rate', models.DecimalField(decimal_places=2, max_digits=10)),
                ('overtime_rate', models.DecimalField(blank=True, decimal_places=2, help_text='Hourly rate above the weekly threshold (null = base rate)', max_digits=10, null=True)),
                ('weekly_hours_threshold', models.DecimalField(blank=True, decimal_places=2, help_text='Weekly hours after which overtime applies (null = 40)', max_digits=5, null=True)),
                ('status', models.CharField(choices=[('planned', 'Planned'), ('active', 'Active'), ('archived', 'Archived')], default='planned', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['start_date', 'id'],
                'indexes': [models.Index(fields=['status', 'start_date', 'end_date'], name='contract_status_dates_idx')],
            },
        ),
        migrations.CreateModel(
            name='ContractScheduleDay',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('weekday', models.PositiveSmallIntegerField(help_text='Day of week (0=Sunday, 6=Saturday)', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(6)])),
                ('enabled', models.BooleanField(default=False)),
                ('start_local', models.CharField(help_text='Local start time, HH:mm', max_length=5)),
                ('end_local', models.CharField(help_text='Local end time, HH:mm', max_length=5)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedule_days', to='contracts.contract')),
            ],
            options={
                'ordering': ['contract', 'weekday'],
                'constraints': [models.UniqueConstraint(fields=('contract', 'weekday'), name='contract_schedule_day_unique_weekday')],
            },
        ),
        migrations.CreateModel(
            name='ShiftOccurrence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('local_date', models.DateField(help_text='Calendar date the shift starts on')),
                ('start_utc', models.DateTimeField()),
                ('end_utc', models.DateTimeField()),
                ('source', models.CharField(choices=[('contract', 'Contract'), ('manual', 'Manual')], default='manual', max_length=20)),
                ('status', models.CharField(choices=[('planned', 'Planned'), ('finalized', 'Finalized')], default='planned', max_length=20)),
                ('actual_start', models.DateTimeField(blank=True, null=True)),
                ('actual_end', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('contract', models.ForeignKey(blank=True, help_text='Owning contract (null for manually entered shifts)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='occurrences', to='contracts.contract')),
            ],
            options={
                'ordering': ['local_date', 'start_utc', 'id'],
                'indexes': [
                    models.Index(fields=['contract', 'local_date'], name='shift_contract_date_idx'),
                    models.Index(fields=['local_date', 'status'], name='shift_date_status_idx'),
                ],
                'constraints': [models.UniqueConstraint(condition=models.Q(('source', 'contract')), fields=('contract', 'local_date'), name='shift_occurrence_unique_contract_date')],
            },
        ),
    ]
