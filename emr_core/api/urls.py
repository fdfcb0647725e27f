# emr_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from emr_core.audit.api.views import AuditEventViewSet
from emr_core.iam.api.auth import LoginView, LogoutView, RefreshView
from emr_core.lab.api.views import LabResultViewSet
from emr_core.medical_records.api.views import MedicalRecordViewSet
from emr_core.notifications.api.views import NotificationViewSet
from emr_core.patients.api.views import PatientViewSet
from emr_core.portal.api.views import PatientMessageViewSet, PatientPreferencesView
from emr_core.prescriptions.api.views import PrescriptionViewSet

router = DefaultRouter()

router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"lab/results", LabResultViewSet, basename="lab-results")
router.register(r"medical-records", MedicalRecordViewSet, basename="medical-records")
router.register(r"prescriptions", PrescriptionViewSet, basename="prescriptions")
router.register(r"notifications", NotificationViewSet, basename="notifications")
router.register(r"portal/messages", PatientMessageViewSet, basename="portal-messages")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    # Auth (no scope header required)
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),

    # Non-ViewSet endpoint
    path(
        "portal/patients/<uuid:patient_id>/preferences/",
        PatientPreferencesView.as_view(),
        name="portal-patient-preferences",
    ),

    path("", include(router.urls)),
]
