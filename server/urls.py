"""
Main URL mapping configuration file.

The API routes come first, everything that does not match them is
handed to the single-page frontend.
"""

from django.urls import include, path, re_path

from server.apps.frontend.views import spa_fallback

urlpatterns = [
    path('', include('server.apps.software.urls')),
    re_path(r'^(?P<path>.*)$', spa_fallback, name='spa_fallback'),
]
