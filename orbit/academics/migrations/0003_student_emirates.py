# Generated manually to record the emirate a student resides in

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("academics", "0002_student_created_by"),
    ]

    operations = [
        migrations.AddField(
            model_name="student",
            name="emirates",
            field=models.CharField(blank=True, max_length=50),
        ),
    ]
