from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from automation.models import SystemSetting


class SystemSettingViewSetTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username="admin", password="password123", is_staff=True)
        self.recruiter = User.objects.create_user(username="recruiter", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_non_staff_users_are_forbidden(self):
        client = APIClient()
        client.force_authenticate(self.recruiter)

        response = client.get(reverse("system-setting-list"))

        self.assertEqual(response.status_code, 403)

    def test_put_creates_unknown_key(self):
        url = reverse("system-setting-detail", args=[SystemSetting.KEY_RESUME_PROCESSING_WEBHOOK_URL])

        response = self.client.put(url, {"value": "https://n8n.example.com/hook"}, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(
            SystemSetting.get_value(SystemSetting.KEY_RESUME_PROCESSING_WEBHOOK_URL),
            "https://n8n.example.com/hook",
        )

    def test_put_updates_existing_key(self):
        SystemSetting.objects.create(key=SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS, value="2")
        url = reverse("system-setting-detail", args=[SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS])

        response = self.client.put(
            url,
            {"key": SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS, "value": "6"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(SystemSetting.get_value(SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS), "6")

    def test_list_returns_settings_by_key(self):
        SystemSetting.objects.create(key="b", value="2")
        SystemSetting.objects.create(key="a", value="1")

        response = self.client.get(reverse("system-setting-list"))

        self.assertEqual([row["key"] for row in response.json()], ["a", "b"])
