# Generated manually to backfill first/last names and placeholder emails for imported students

from django.db import migrations


def backfill_student_names(apps, schema_editor):
    Student = apps.get_model("academics", "Student")
    for student in Student.objects.filter(first_name="", last_name="").iterator():
        parts = (student.full_name or "").strip().split(None, 1)
        if not parts:
            continue
        student.first_name = parts[0][:100]
        student.last_name = parts[1][:100] if len(parts) > 1 else ""
        student.save(update_fields=["first_name", "last_name"])

    for student in Student.objects.filter(email="").iterator():
        student.email = f"{student.student_id.lower()}@students.invalid"
        student.save(update_fields=["email"])


class Migration(migrations.Migration):

    dependencies = [
        ("academics", "0004_student_signature_and_registration_link"),
    ]

    operations = [
        migrations.RunPython(backfill_student_names, migrations.RunPython.noop),
    ]
