from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Entry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("key", models.BinaryField(max_length=65000, unique=True)),
                ("value", models.BinaryField()),
            ],
            options={
                "ordering": ["key"],
                "verbose_name_plural": "entries",
            },
        ),
    ]
