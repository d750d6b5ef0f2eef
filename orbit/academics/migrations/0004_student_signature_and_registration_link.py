# Generated manually for online registration: signatures and one-time registration links

import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("academics", "0003_student_emirates"),
    ]

    operations = [
        migrations.AddField(
            model_name="student",
            name="signature_data",
            field=models.TextField(blank=True, help_text="Base64 signature image captured at registration"),
        ),
        migrations.AddField(
            model_name="student",
            name="terms_accepted",
            field=models.BooleanField(default=False),
        ),
        migrations.AddField(
            model_name="student",
            name="signature_date",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="student",
            name="register_link",
            field=models.CharField(blank=True, max_length=64, null=True, unique=True),
        ),
        migrations.AddField(
            model_name="student",
            name="register_link_expiry",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="student",
            name="register_link_discount",
            field=models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5),
        ),
        migrations.AddField(
            model_name="student",
            name="register_link_course",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="academics.course",
            ),
        ),
    ]
