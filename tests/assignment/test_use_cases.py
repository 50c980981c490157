"""Tests for the WLAN assignment use cases."""

import pytest

from campus.api.exceptions import (
    ServerError,
    ServiceRequestValidationError,
    SiteConfigurationError,
)
from campus.assignment.config import AssignmentConfig
from campus.assignment.domain.effective_set import (
    EXCLUDE_EVERYTHING_ERROR,
    INCLUDE_NOTHING_ERROR,
)
from campus.assignment.domain.entities import (
    AssignmentOptions,
    DeploymentMode,
    Profile,
    ServiceRequest,
    SiteDeploymentConfig,
)
from campus.assignment.use_cases import (
    DRY_RUN_NOTE,
    SiteNameCache,
    WLANAssignmentUseCase,
)


def site_config(site_id, mode, included=None, excluded=None, name=None):
    return SiteDeploymentConfig(
        site_id=site_id,
        site_name=name or site_id,
        deployment_mode=mode,
        included_profiles=included or [],
        excluded_profiles=excluded or [],
    )


# ============================================
# Simple path
# ============================================

class TestAutoAssignment:
    """Tests for create_wlan_with_auto_assignment."""

    @pytest.mark.asyncio
    async def test_assigns_every_unique_profile(self, controller, service_request):
        use_case = WLANAssignmentUseCase(controller)

        response = await use_case.create_wlan_with_auto_assignment(service_request)

        assert response.service_id == "svc-1"
        assert response.success is True
        assert response.errors is None
        assert response.sites_processed == 2
        assert response.device_groups_found == 2
        assert response.profiles_assigned == 3
        assert [a.profile_id for a in response.assignments] == ["p1", "p2", "p3"]
        assert [a.profile_name for a in response.assignments] == [
            "Name-p1", "Name-p2", "Name-p3",
        ]
        # p2 is shared by both sites but assigned once
        assert controller.assigned == [("svc-1", "p1"), ("svc-1", "p2"), ("svc-1", "p3")]
        assert response.summary() == "3 of 3 profile(s) assigned across 2 site(s)"

    @pytest.mark.asyncio
    async def test_syncs_assigned_profiles_in_one_call(self, controller, service_request):
        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            service_request
        )

        assert controller.batch_syncs == [["p1", "p2", "p3"]]
        assert controller.single_syncs == []
        assert [s.profile_id for s in response.sync_results] == ["p1", "p2", "p3"]
        assert all(s.success and s.synced_at for s in response.sync_results)

    @pytest.mark.asyncio
    async def test_service_created_before_discovery(self, controller, service_request):
        await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(service_request)

        assert controller.events[0] == ("create_service", "Staff")

    @pytest.mark.asyncio
    async def test_invalid_request_creates_nothing(self, controller):
        request = ServiceRequest(name="Staff", ssid="Staff", sites=["site-a"])

        with pytest.raises(ServiceRequestValidationError) as exc_info:
            await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(request)

        assert exc_info.value.errors == ["Passphrase is required for secured networks"]
        assert controller.events == []

    @pytest.mark.asyncio
    async def test_service_creation_failure_propagates(self, controller, service_request):
        controller.create_fails = True

        with pytest.raises(ServerError):
            await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
                service_request
            )

        assert controller.called("get_device_groups_by_site") == []

    @pytest.mark.asyncio
    async def test_failed_profiles_do_not_stop_the_rest(self, wide_controller):
        wide_controller.failing_assignments = {"p4", "p7"}
        request = ServiceRequest(name="Staff", ssid="Staff", passphrase="pw", sites=["site-a"])

        response = await WLANAssignmentUseCase(wide_controller).create_wlan_with_auto_assignment(
            request
        )

        assert [a.profile_id for a in response.assignments] == [f"p{i}" for i in range(1, 11)]
        failed = [a for a in response.assignments if not a.success]
        assert [a.profile_id for a in failed] == ["p4", "p7"]
        assert failed[0].error == "Profile p4 rejected the service"
        assert response.profiles_assigned == 8
        assert response.success is False
        assert response.errors == ["2 profile(s) failed to assign"]
        assert response.summary() == "8 of 10 profile(s) assigned across 1 site(s)"
        # Only successful assignments are synced
        assert wide_controller.batch_syncs == [
            ["p1", "p2", "p3", "p5", "p6", "p8", "p9", "p10"]
        ]

    @pytest.mark.asyncio
    async def test_site_discovery_failure_is_isolated(self, controller, service_request):
        controller.failing_sites.add("site-a")

        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            service_request
        )

        assert [a.profile_id for a in response.assignments] == ["p2", "p3"]
        assert response.success is True
        assert response.sites_processed == 2

    @pytest.mark.asyncio
    async def test_no_sites(self, controller):
        request = ServiceRequest(name="Guest", ssid="Guest", security="open")

        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            request
        )

        assert response.assignments == []
        assert response.sync_results is None
        assert response.success is True
        assert response.summary() == "0 of 0 profile(s) assigned across 0 site(s)"

    @pytest.mark.asyncio
    async def test_dry_run_assigns_nothing(self, controller, service_request):
        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            service_request,
            AssignmentOptions(dry_run=True),
        )

        assert controller.assigned == []
        assert controller.batch_syncs == []
        assert response.sync_results is None
        assert response.profiles_assigned == 0
        assert response.success is True
        assert all(a.success and a.error == DRY_RUN_NOTE for a in response.assignments)
        assert len(response.assignments) == 3

    @pytest.mark.asyncio
    async def test_skip_sync(self, controller, service_request):
        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            service_request,
            AssignmentOptions(skip_sync=True),
        )

        assert response.profiles_assigned == 3
        assert response.sync_results is None
        assert controller.batch_syncs == []
        assert controller.single_syncs == []

    @pytest.mark.asyncio
    async def test_nothing_synced_when_every_assignment_failed(self, controller, service_request):
        controller.failing_assignments = {"p1", "p2", "p3"}

        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            service_request
        )

        assert response.success is False
        assert response.profiles_assigned == 0
        assert response.sync_results is None
        assert controller.batch_syncs == []

    @pytest.mark.asyncio
    async def test_sync_failure_does_not_flip_success(self, controller, service_request):
        controller.batch_sync_fails = True
        controller.failing_syncs.add("p2")

        response = await WLANAssignmentUseCase(controller).create_wlan_with_auto_assignment(
            service_request
        )

        assert response.success is True
        assert sorted(controller.single_syncs) == ["p1", "p2", "p3"]
        failed = [s for s in response.sync_results if not s.success]
        assert [s.profile_id for s in failed] == ["p2"]
        assert failed[0].profile_name == "Name-p2"


# ============================================
# Batched assignment
# ============================================

class TestAssignToProfiles:
    """Tests for batched assignment."""

    @pytest.mark.asyncio
    async def test_batches_of_five(self, empty_controller):
        controller = empty_controller
        controller.assign_delay = 0.01
        profiles = [Profile(id=f"p{i}") for i in range(1, 13)]

        results = await WLANAssignmentUseCase(controller).assign_to_profiles("svc-1", profiles)

        assert [r.profile_id for r in results] == [p.id for p in profiles]
        assert controller.max_in_flight == 5
        # 5 + 5 + 2, each batch starting from an idle controller
        assert controller.start_levels == [1, 2, 3, 4, 5, 1, 2, 3, 4, 5, 1, 2]

    @pytest.mark.asyncio
    async def test_configured_batch_size(self, empty_controller):
        controller = empty_controller
        controller.assign_delay = 0.01
        profiles = [Profile(id=f"p{i}") for i in range(1, 8)]
        use_case = WLANAssignmentUseCase(controller, config=AssignmentConfig(batch_size=3))

        await use_case.assign_to_profiles("svc-1", profiles)

        assert controller.start_levels == [1, 2, 3, 1, 2, 3, 1]

    @pytest.mark.asyncio
    async def test_profile_name_falls_back_to_id(self, empty_controller):
        results = await WLANAssignmentUseCase(empty_controller).assign_to_profiles(
            "svc-1", [Profile(id="p1")]
        )

        assert results[0].profile_name == "p1"

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self, empty_controller):
        controller = empty_controller
        controller.assign_delay = 0.5
        use_case = WLANAssignmentUseCase(
            controller,
            config=AssignmentConfig(call_timeout=0.05),
        )

        results = await use_case.assign_to_profiles("svc-1", [Profile(id="p1")])

        assert results[0].success is False
        assert "did not complete within" in results[0].error
        assert controller.assigned == []

    @pytest.mark.asyncio
    async def test_empty(self, empty_controller):
        controller = empty_controller
        assert await WLANAssignmentUseCase(controller).assign_to_profiles("svc-1", []) == []
        assert controller.events == []


# ============================================
# Site-centric path
# ============================================

class TestSiteCentricDeployment:
    """Tests for create_wlan_with_site_centric_deployment."""

    @pytest.mark.asyncio
    async def test_include_and_exclude(self, controller, service_request):
        use_case = WLANAssignmentUseCase(controller)

        response = await use_case.create_wlan_with_site_centric_deployment(
            service_request,
            [
                site_config("site-a", DeploymentMode.INCLUDE_ONLY, included=["p1"]),
                site_config("site-b", DeploymentMode.EXCLUDE_SOME, excluded=["p2"]),
            ],
        )

        assert [a.profile_id for a in response.assignments] == ["p1", "p3"]
        assert response.profiles_assigned == 2
        assert response.sites_processed == 2
        assert response.success is True
        assert [e.profile_ids for e in response.effective_sets] == [["p1"], ["p3"]]
        assert response.effective_sets[1].excluded_count == 1
        assert controller.batch_syncs == [["p1", "p3"]]

    @pytest.mark.asyncio
    async def test_union_assigns_shared_profile_once(self, controller, service_request):
        response = await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
            service_request,
            [
                site_config("site-a", DeploymentMode.ALL_PROFILES_AT_SITE),
                site_config("site-b", DeploymentMode.ALL_PROFILES_AT_SITE),
            ],
        )

        assert [a.profile_id for a in response.assignments] == ["p1", "p2", "p3"]
        assert len(controller.assigned) == 3

    @pytest.mark.asyncio
    async def test_invalid_site_aborts_before_creating(self, controller, service_request):
        with pytest.raises(SiteConfigurationError) as exc_info:
            await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
                service_request,
                [
                    site_config("site-a", DeploymentMode.INCLUDE_ONLY),
                    site_config("site-b", DeploymentMode.ALL_PROFILES_AT_SITE),
                ],
            )

        assert exc_info.value.site_errors == {"site-a": [INCLUDE_NOTHING_ERROR]}
        assert controller.called("create_service") == []
        assert controller.assigned == []

    @pytest.mark.asyncio
    async def test_every_invalid_site_reported(self, controller, service_request):
        with pytest.raises(SiteConfigurationError) as exc_info:
            await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
                service_request,
                [
                    site_config("site-a", DeploymentMode.INCLUDE_ONLY),
                    site_config("site-b", DeploymentMode.EXCLUDE_SOME, excluded=["p2", "p3"]),
                ],
            )

        assert exc_info.value.site_errors == {
            "site-a": [INCLUDE_NOTHING_ERROR],
            "site-b": [EXCLUDE_EVERYTHING_ERROR],
        }
        assert exc_info.value.code == "INVALID_SITE_CONFIGURATION"

    @pytest.mark.asyncio
    async def test_validation_uses_fresh_profiles(self, controller):
        # Stale profiles on the config would make this exclusion look safe
        config = site_config("site-b", DeploymentMode.EXCLUDE_SOME, excluded=["p2", "p3"])
        config = config.with_profiles([Profile(id="p2"), Profile(id="p3"), Profile(id="old")])
        request = ServiceRequest(name="Staff", ssid="Staff", passphrase="pw")

        with pytest.raises(SiteConfigurationError):
            await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
                request, [config]
            )

    @pytest.mark.asyncio
    async def test_discovery_runs_before_create(self, controller, service_request):
        await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
            service_request,
            [site_config("site-a", DeploymentMode.ALL_PROFILES_AT_SITE)],
        )

        methods = [e[0] for e in controller.events]
        assert methods.index("get_device_groups_by_site") < methods.index("create_service")

    @pytest.mark.asyncio
    async def test_sites_without_config_get_all_profiles(self, controller, service_request):
        use_case = WLANAssignmentUseCase(controller, site_names=SiteNameCache(controller))

        response = await use_case.create_wlan_with_site_centric_deployment(
            service_request,
            [site_config("site-a", DeploymentMode.INCLUDE_ONLY, included=["p1"])],
        )

        site_b = response.effective_sets[1]
        assert site_b.site_id == "site-b"
        assert site_b.site_name == "Building B"
        assert site_b.deployment_mode == DeploymentMode.ALL_PROFILES_AT_SITE
        assert site_b.profile_ids == ["p2", "p3"]
        assert [a.profile_id for a in response.assignments] == ["p1", "p2", "p3"]

    @pytest.mark.asyncio
    async def test_duplicate_site_config_first_wins(self, controller):
        request = ServiceRequest(name="Staff", ssid="Staff", passphrase="pw")

        response = await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
            request,
            [
                site_config("site-a", DeploymentMode.INCLUDE_ONLY, included=["p2"]),
                site_config("site-a", DeploymentMode.ALL_PROFILES_AT_SITE),
            ],
        )

        assert response.sites_processed == 1
        assert [a.profile_id for a in response.assignments] == ["p2"]

    @pytest.mark.asyncio
    async def test_no_sites_rejected(self, controller):
        request = ServiceRequest(name="Staff", ssid="Staff", passphrase="pw")

        with pytest.raises(ServiceRequestValidationError) as exc_info:
            await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
                request, []
            )

        assert exc_info.value.errors == ["At least one site must be selected"]
        assert controller.events == []

    @pytest.mark.asyncio
    async def test_partial_failure(self, controller, service_request):
        controller.failing_assignments.add("p3")

        response = await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
            service_request,
            [site_config("site-b", DeploymentMode.ALL_PROFILES_AT_SITE)],
        )

        assert response.success is False
        assert response.errors == ["1 profile(s) failed to assign"]
        assert response.profiles_assigned == 2
        assert response.summary() == "2 of 3 profile(s) assigned across 2 site(s)"

    @pytest.mark.asyncio
    async def test_dry_run(self, controller, service_request):
        response = await WLANAssignmentUseCase(controller).create_wlan_with_site_centric_deployment(
            service_request,
            [site_config("site-a", DeploymentMode.EXCLUDE_SOME, excluded=["p1"])],
            AssignmentOptions(dry_run=True),
        )

        assert controller.assigned == []
        assert response.profiles_assigned == 0
        assert response.sync_results is None
        assert all(a.error == DRY_RUN_NOTE for a in response.assignments)


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_is_read_only(self, controller):
        profiles = await WLANAssignmentUseCase(controller).preview_profiles_for_sites(
            ["site-a", "site-b"]
        )

        assert [p.id for p in profiles] == ["p1", "p2", "p3"]
        assert controller.called("create_service") == []
        assert controller.called("assign_service_to_profile") == []
