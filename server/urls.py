"""Root URL configuration.

Only the admin site is mounted here; the public API surface is wired by
the deployment on top of the ``logic`` packages.
"""

from django.contrib import admin
from django.urls import path

admin.site.site_header = 'Resource Hub'

urlpatterns = [
    path('admin/', admin.site.urls),
]
