from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("scheduling", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="sessiontemplate",
            name="next_window_start",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
