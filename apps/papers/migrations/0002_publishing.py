from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('papers', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='researchpaper',
            name='visibility',
            field=models.CharField(choices=[('public', 'Public'), ('campus', 'Campus'), ('private', 'Private'), ('embargo', 'Embargo')], default='campus', max_length=10),
        ),
        migrations.AddField(
            model_name='researchpaper',
            name='allowed_viewers',
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name='researchpaper',
            name='embargo_until',
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name='researchpaper',
            name='categories',
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name='researchpaper',
            name='genre_tags',
            field=models.JSONField(blank=True, default=list),
        ),
    ]
