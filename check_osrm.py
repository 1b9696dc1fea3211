#!/usr/bin/env python3
"""Manual check that the configured OSRM upstreams answer table requests."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from itinerary.config import settings
from itinerary.models.domain import TravelMode
from itinerary.services.routing.matrix import TravelTimeMatrix
from itinerary.services.routing.osrm_client import OSRMClient, check_health

# Two points in central Berlin
TEST_COORDS = [
    (52.517037, 13.388860),
    (52.496891, 13.385983),
]


def main():
    print("=" * 60)
    print("OSRM Connection Check")
    print("=" * 60)
    print()

    print("1. Checking OSRM health...")
    print(f"   Base URL: {settings.osrm_base_url}")
    if not check_health():
        print("   [ERROR] OSRM service is not responding")
        return 1
    print("   [OK] OSRM service is healthy")
    print()

    print("2. Requesting duration tables per profile...")
    failures = 0
    for profile in (TravelMode.DRIVING, TravelMode.WALKING, TravelMode.CYCLING):
        try:
            client = OSRMClient(profile=profile)
            matrix = TravelTimeMatrix.from_osrm(client.table(TEST_COORDS))
            print(f"   [OK] {profile.value}: {matrix.size}x{matrix.size}, sample {matrix.minutes(0, 1):.1f} min")
        except (ConnectionError, ValueError) as e:
            failures += 1
            print(f"   [ERROR] {profile.value}: {e}")
    print()

    if failures:
        print(f"[FAILED] {failures} profile(s) could not be reached")
        return 1
    print("=" * 60)
    print("[SUCCESS] OSRM is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
