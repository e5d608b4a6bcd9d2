from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Option',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(help_text="Prefixed storage key e.g. 'general_site_name'", max_length=191, unique=True)),
                ('value', models.JSONField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'formkit_option',
                'ordering': ['key'],
                'permissions': [('manage_options', 'Can manage plugin settings')],
            },
        ),
        migrations.CreateModel(
            name='EntityMeta',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('entity_id', models.PositiveBigIntegerField(db_index=True)),
                ('meta_key', models.CharField(max_length=191)),
                ('meta_value', models.JSONField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'formkit_entity_meta',
                'ordering': ['entity_id', 'meta_key'],
            },
        ),
        migrations.AddConstraint(
            model_name='entitymeta',
            constraint=models.UniqueConstraint(fields=('entity_id', 'meta_key'), name='formkit_unique_entity_meta_key'),
        ),
    ]
