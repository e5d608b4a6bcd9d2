"""
URL configuration for the admin_panel project.
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.views.generic import RedirectView

# ======================
# URL Patterns
# ======================


urlpatterns = [
    # Django admin
    path("admin/", admin.site.urls),
    path("", RedirectView.as_view(url='admin_panel/forms/', permanent=False)),
]

admin_urls = [
    #   FORMS
    path("admin_panel/", include('formkit.urls.urls')),
]
urlpatterns += admin_urls

# ======================
# Static & Media
# ======================

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL,
                          document_root=settings.STATIC_ROOT)
    urlpatterns += static(settings.MEDIA_URL,
                          document_root=settings.MEDIA_ROOT)
