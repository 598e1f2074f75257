"""Check Harvest and Forecast credentials and what the sync would see."""

from clients import ApiError, ForecastClient, HarvestClient
from linking import link_projects, link_users
from utils import load_config_safe


def main():
    config = load_config_safe()
    if config is None:
        return 1

    harvest = HarvestClient(config)
    forecast = ForecastClient(config)

    # Test 1: Harvest
    print("[*] Testing Harvest API...")
    try:
        harvest_projects = harvest.list_projects()
        harvest_users = harvest.list_users()
    except ApiError as e:
        print(f"    Error: {e}")
        return 1
    print(f"    Projects: {len(harvest_projects)}, Users: {len(harvest_users)}")

    # Test 2: Forecast
    print()
    print("[*] Testing Forecast API...")
    try:
        forecast_projects = forecast.list_projects()
        people = forecast.list_people()
    except ApiError as e:
        print(f"    Error: {e}")
        return 1
    archived = sum(p.archived for p in forecast_projects) + sum(p.archived for p in people)
    print(f"    Projects: {len(forecast_projects)}, People: {len(people)} ({archived} archived)")

    # Test 3: Links
    print()
    print("[*] Linking...")
    user_links = link_users(harvest_users, people)
    project_links = link_projects(harvest_projects, forecast_projects)
    for user in harvest_users:
        link = user_links[user.id]
        status = f"-> {link.destination_id} ({link.method})" if link.linked else "NOT LINKED"
        print(f"    {user.full_name:<30} {status}")
    unlinked = [p for p in harvest_projects if not project_links[p.id].linked]
    print(f"    Projects linked: {len(harvest_projects) - len(unlinked)}/{len(harvest_projects)}")
    for project in unlinked[:20]:
        print(f"      - {project.name} ({project.id})")

    return 0


if __name__ == "__main__":
    exit(main())
