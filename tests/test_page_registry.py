import importlib

import pytest

import config
from auth.auth_service import AuthService
from security import ROLE_LABELS, get_allowed_pages_for_role

ALL_MODULES = [
    page["module"]
    for pages in config.ALL_PAGES.values()
    for page in pages.values()
]


class TestRoleFiltering:
    def test_admin_sees_every_section(self):
        allowed = get_allowed_pages_for_role("admin", config.ALL_PAGES)
        assert list(allowed) == list(config.ALL_PAGES)

    @pytest.mark.parametrize("role, sections", [
        ("strategist", ["Creatives"]),
        ("editor", ["Production"]),
        ("va", ["Validation", "Review"]),
        ("reviewer", ["Review"]),
    ])
    def test_each_role_sees_its_own_pages(self, role, sections):
        assert list(get_allowed_pages_for_role(role, config.ALL_PAGES)) == sections

    def test_unknown_role_sees_nothing(self):
        assert get_allowed_pages_for_role("guest", config.ALL_PAGES) == {}

    def test_every_registered_role_has_a_label(self):
        roles = {r for pages in config.ALL_PAGES.values() for p in pages.values() for r in p["allowed_roles"]}
        assert roles <= set(ROLE_LABELS)

    def test_every_section_has_an_icon(self):
        assert set(config.ALL_PAGES) == set(config.SECTION_ICONS)


class TestPageModules:
    @pytest.mark.parametrize("module_path", ALL_MODULES)
    def test_module_exposes_render_page(self, module_path):
        module = importlib.import_module(f"apps.{module_path}")
        assert callable(module.render_page)
        assert hasattr(module, "Page")


class TestAdminUnlock:
    def test_correct_password_unlocks(self):
        result = AuthService(admin_password="s3cret").unlock_admin("s3cret")
        assert result.authenticated
        assert result.role == "admin"
        assert result.error is None

    def test_wrong_password_is_refused(self):
        result = AuthService(admin_password="s3cret").unlock_admin("guess")
        assert not result.authenticated
        assert result.error == "Incorrect password"

    def test_empty_password_is_refused(self):
        assert not AuthService(admin_password="s3cret").unlock_admin("").authenticated

    def test_default_password_comes_from_config(self):
        assert AuthService().unlock_admin(config.ADMIN_PASSWORD).authenticated

    def test_unknown_mode(self):
        result = AuthService(mode="sso", admin_password="s3cret").unlock_admin("s3cret")
        assert not result.authenticated
        assert "sso" in result.error
