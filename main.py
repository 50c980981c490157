#!/usr/bin/env python3
"""Campus WLAN Auto-Assignment CLI.

This module provides a command-line interface for creating a WLAN on the
Campus wireless controller and pushing it to the configuration profiles
of the selected sites.

Architecture:
    - Uses CampusClient as the shared HTTP layer for all API calls
    - TokenManager handles the controller login
    - CampusControllerAdapter implements the controller port
    - WLANAssignmentUseCase runs discovery, assignment and sync

Environment Variables Required:
    - CAMPUS_BASE_URL: Controller base URL
    - CAMPUS_USERNAME: Controller login user
    - CAMPUS_PASSWORD: Controller login password
    - CAMPUS_TOKEN_URL: Login endpoint (optional, derived from CAMPUS_BASE_URL)
    - WLAN_ASSIGN_BATCH_SIZE, WLAN_ASSIGN_CALL_TIMEOUT,
      WLAN_DISCOVERY_CONCURRENCY: Workflow tuning (optional)

Example Usage:
    $ python main.py preview --sites site-a site-b
    $ python main.py create --ssid Guest --passphrase secret123 --sites site-a
    $ python main.py create --ssid Lab --security open --sites site-a --dry-run
    $ python main.py deploy --plan plan.json

A plan file for `deploy` looks like:

    {
        "service": {"ssid": "Staff", "passphrase": "...", "sites": ["site-a"]},
        "site_assignments": [
            {"site_id": "site-b", "deployment_mode": "EXCLUDE_SOME",
             "excluded_profiles": ["p-lobby"]}
        ],
        "options": {"dry_run": false, "skip_sync": false}
    }
"""
import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv

load_dotenv()

from campus.api import CampusClient, CampusError, TokenManager  # noqa: E402
from campus.api.exceptions import (  # noqa: E402
    ConfigurationError,
    ServiceRequestValidationError,
    SiteConfigurationError,
)
from campus.assignment.adapters import CampusControllerAdapter  # noqa: E402
from campus.assignment.api.schemas import SiteCentricRequest  # noqa: E402
from campus.assignment.config import AssignmentConfig  # noqa: E402
from campus.assignment.domain.entities import (  # noqa: E402
    AssignmentOptions,
    ServiceRequest,
)
from campus.assignment.use_cases import SiteNameCache, WLANAssignmentUseCase  # noqa: E402


def print_outcome(response) -> None:
    """Print the per-profile results of a deployment."""
    print("\n" + "=" * 60)
    print("ASSIGNMENT COMPLETE" if response.success else "ASSIGNMENT FINISHED WITH FAILURES")
    print("=" * 60)
    print(f"Service: {response.service_id}")
    print(response.summary())

    for result in response.assignments:
        mark = "ok" if result.success else "FAILED"
        note = f" ({result.error})" if result.error else ""
        print(f"  [{mark}] {result.profile_name}{note}")

    if response.sync_results is not None:
        synced = sum(1 for s in response.sync_results if s.success)
        print(f"\nSynced {synced} of {len(response.sync_results)} profile(s)")
        for result in response.sync_results:
            if not result.success:
                print(f"  [sync FAILED] {result.profile_name}: {result.error}")


async def run_preview(use_case: WLANAssignmentUseCase, site_ids: list[str]) -> None:
    """List the profiles a deployment to these sites would reach."""
    profiles = await use_case.preview_profiles_for_sites(site_ids)
    print(f"[Main] {len(profiles)} profile(s) across {len(site_ids)} site(s)")
    for profile in profiles:
        print(f"  {profile.id:<24} {profile.display_name:<32} site={profile.site_name}")


async def run_create(use_case: WLANAssignmentUseCase, args: argparse.Namespace):
    """Create a WLAN and assign it to every profile at the given sites.

    Returns:
        AutoAssignmentResponse
    """
    request = ServiceRequest(
        name=args.name or args.ssid,
        ssid=args.ssid,
        security=args.security,
        passphrase=args.passphrase,
        vlan=args.vlan,
        band=args.band,
        sites=args.sites,
        description=args.description,
    )
    options = AssignmentOptions(dry_run=args.dry_run, skip_sync=args.skip_sync)
    return await use_case.create_wlan_with_auto_assignment(request, options)


async def run_deploy(use_case: WLANAssignmentUseCase, plan_file: str):
    """Run a site-centric deployment described by a JSON plan.

    Returns:
        SiteCentricDeploymentResponse
    """
    with open(plan_file) as f:
        plan = SiteCentricRequest.model_validate(json.load(f))

    options = AssignmentOptions(
        dry_run=plan.options.dry_run,
        skip_sync=plan.options.skip_sync,
    )
    return await use_case.create_wlan_with_site_centric_deployment(
        plan.service.to_domain(),
        [c.to_domain() for c in plan.site_assignments],
        options,
    )


async def run(args: argparse.Namespace) -> int:
    """Main async entry point.

    Returns:
        Process exit code
    """
    start_time = datetime.now(timezone.utc)
    print(f"[Main] Starting {args.command} at {start_time.isoformat()}")

    try:
        config = AssignmentConfig.from_env()
        token_manager = TokenManager()
    except ConfigurationError as e:
        print(f"[Main] Configuration error: {e}")
        return 1

    exit_code = 0
    async with CampusClient(token_manager) as client:
        controller = CampusControllerAdapter(client)
        use_case = WLANAssignmentUseCase(
            controller,
            config=config,
            site_names=SiteNameCache(controller),
        )

        try:
            if args.command == "preview":
                await run_preview(use_case, args.sites)
            else:
                if args.command == "create":
                    response = await run_create(use_case, args)
                else:
                    response = await run_deploy(use_case, args.plan)
                print_outcome(response)
                exit_code = 0 if response.success else 2

        except SiteConfigurationError as e:
            print(f"[Main] Deployment rejected: {e.message}")
            for site_id, errors in e.site_errors.items():
                for error in errors:
                    print(f"  {site_id}: {error}")
            return 1
        except ServiceRequestValidationError as e:
            print(f"[Main] Invalid WLAN definition:")
            for error in e.errors:
                print(f"  - {error}")
            return 1
        except CampusError as e:
            print(f"[Main] Controller error: {e}")
            return 1

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    print(f"\n[Main] Completed in {duration:.1f} seconds")
    return exit_code


def main():
    parser = argparse.ArgumentParser(
        description="Create WLANs on the Campus controller and assign them to site profiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py preview --sites site-a site-b          # Profiles the sites reach
  python main.py create --ssid Guest --passphrase pw --sites site-a
  python main.py create --ssid Lab --security open --sites site-a --dry-run
  python main.py deploy --plan plan.json                # Per-site include/exclude
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # preview
    preview = subparsers.add_parser("preview", help="List profiles reachable from sites")
    preview.add_argument("--sites", nargs="+", required=True, metavar="SITE_ID")

    # create
    create = subparsers.add_parser("create", help="Create a WLAN on every profile at the sites")
    wlan_group = create.add_argument_group("WLAN Definition")
    wlan_group.add_argument("--ssid", required=True)
    wlan_group.add_argument("--name", help="Service name (defaults to the SSID)")
    wlan_group.add_argument(
        "--security",
        default="wpa2-psk",
        choices=["open", "wpa2-psk", "wpa3-sae", "wpa2-enterprise"],
    )
    wlan_group.add_argument("--passphrase")
    wlan_group.add_argument("--vlan", type=int)
    wlan_group.add_argument("--band", default="dual", choices=["2.4GHz", "5GHz", "dual"])
    wlan_group.add_argument("--description")
    wlan_group.add_argument("--sites", nargs="*", default=[], metavar="SITE_ID")

    run_group = create.add_argument_group("Run Options")
    run_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Create the service and discover profiles, but do not assign"
    )
    run_group.add_argument(
        "--skip-sync",
        action="store_true",
        help="Assign without pushing configuration to the access points"
    )

    # deploy
    deploy = subparsers.add_parser("deploy", help="Run a site-centric deployment plan")
    deploy.add_argument("--plan", required=True, metavar="FILE", help="JSON plan file")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
