from django.urls import path

from server.apps.software import views

app_name = 'software'

urlpatterns = [
    path('api/software', views.list_software, name='list'),
    path('api/software/upload', views.upload_software, name='upload'),
    # `path` lets slashes through so that they are rejected with a 400
    path(
        'api/software/download/<path:server_filename>',
        views.download_software,
        name='download',
    ),
]
