import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, unique=True)),
                ('slug', models.SlugField(unique=True)),
                ('description', models.CharField(blank=True, default='', max_length=500)),
                ('icon', models.CharField(default='📁', max_length=16)),
                ('color', models.CharField(default='#3B82F6', max_length=7)),
                ('resource_count', models.PositiveIntegerField(default=0)),
                ('folder_count', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Department',
                'verbose_name_plural': 'Departments',
                'ordering': ['name'],
                'base_manager_name': 'all_objects',
            },
        ),
        migrations.CreateModel(
            name='Tag',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Tag',
                'verbose_name_plural': 'Tags',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Folder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50)),
                ('slug', models.SlugField(blank=True, default='')),
                ('description', models.CharField(blank=True, default='', max_length=200)),
                ('icon', models.CharField(default='📁', max_length=16)),
                ('color', models.CharField(default='#3B82F6', max_length=7)),
                ('resource_count', models.PositiveIntegerField(default=0)),
                ('order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='folders', to=settings.AUTH_USER_MODEL)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='folders', to='library.department')),
            ],
            options={
                'verbose_name': 'Folder',
                'verbose_name_plural': 'Folders',
                'ordering': ['order', '-created_at'],
                'base_manager_name': 'all_objects',
                'constraints': [models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('department', 'name'), name='folders_department_name_active_unique')],
            },
        ),
        migrations.CreateModel(
            name='Resource',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=100)),
                ('description', models.CharField(blank=True, default='', max_length=500)),
                ('type', models.CharField(choices=[('file', 'File'), ('link', 'Link')], db_index=True, max_length=16)),
                ('url', models.URLField(max_length=2048)),
                ('public_id', models.CharField(blank=True, default='', help_text='Object storage key', max_length=512)),
                ('format', models.CharField(blank=True, default='', max_length=32)),
                ('size', models.BigIntegerField(blank=True, help_text='File size in bytes', null=True)),
                ('link_type', models.CharField(blank=True, choices=[('drive', 'Drive'), ('figma', 'Figma'), ('notion', 'Notion'), ('github', 'GitHub'), ('other', 'Other')], default='', max_length=16)),
                ('contributors', models.JSONField(blank=True, default=list)),
                ('views', models.PositiveBigIntegerField(default=0)),
                ('downloads', models.PositiveBigIntegerField(default=0)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='resources', to='library.department')),
                ('folder', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='resources', to='library.folder')),
                ('tags', models.ManyToManyField(blank=True, related_name='resources', to='library.tag')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='resources', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Resource',
                'verbose_name_plural': 'Resources',
                'ordering': ['-uploaded_at'],
                'base_manager_name': 'all_objects',
                'indexes': [
                    models.Index(fields=['department', 'folder', 'is_active'], name='resources_dept_folder_idx'),
                    models.Index(fields=['uploaded_by', 'is_active'], name='resources_uploader_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Favorite',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('resource', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='favorites', to='library.resource')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='favorites', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Favorite',
                'verbose_name_plural': 'Favorites',
                'constraints': [models.UniqueConstraint(fields=('resource', 'user'), name='favorites_resource_user_unique')],
            },
        ),
        migrations.AddField(
            model_name='resource',
            name='favorited_by',
            field=models.ManyToManyField(blank=True, related_name='favorite_resources', through='library.Favorite', to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name='ResourceFile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('url', models.URLField(max_length=2048)),
                ('public_id', models.CharField(blank=True, default='', help_text='Object storage key, empty for external links', max_length=512)),
                ('format', models.CharField(blank=True, default='', max_length=32)),
                ('size', models.BigIntegerField(default=0)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True)),
                ('resource', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to='library.resource')),
            ],
            options={
                'verbose_name': 'Resource File',
                'verbose_name_plural': 'Resource Files',
                'ordering': ['uploaded_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('url', models.URLField(max_length=2048)),
                ('public_id', models.CharField(blank=True, default='', help_text='Object storage key, empty for external links', max_length=512)),
                ('format', models.CharField(blank=True, default='', max_length=32)),
                ('size', models.BigIntegerField(default=0)),
                ('type', models.CharField(choices=[('image', 'Image'), ('video', 'Video'), ('pdf', 'PDF'), ('document', 'Document'), ('spreadsheet', 'Spreadsheet'), ('presentation', 'Presentation'), ('archive', 'Archive'), ('link', 'Link'), ('other', 'Other')], db_index=True, default='other', max_length=16)),
                ('resource_type', models.CharField(choices=[('image', 'Image'), ('video', 'Video'), ('raw', 'Raw'), ('auto', 'Auto'), ('link', 'Link')], db_index=True, default='auto', max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at'],
            },
        ),
    ]
