from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # Admin site
    path('admin/', admin.site.urls),

    # Report generation (report cards, teacher and class performance)
    path('api/reports/', include('apps.assessment.urls', namespace='assessment')),

    # Year-end promotion and term transition
    path('api/promotion/', include('apps.academics.urls', namespace='academics')),
]

# Admin site customization
admin.site.site_header = 'School Results Administration'
admin.site.site_title = 'School Results Admin'
admin.site.index_title = 'Reports, ranking and promotion'
