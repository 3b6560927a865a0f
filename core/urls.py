from django.urls import path
from . import views

urlpatterns = [
    path('api/platform-stats/', views.platform_stats, name='platform_stats'),
    path('api/user/profiles/', views.user_profiles, name='user_profiles'),
    path('api/my-stats/', views.my_platform_stats, name='my_platform_stats'),
]
