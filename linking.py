"""Linking of Harvest projects and users to their Forecast counterparts.

An explicit Harvest id stored on the Forecast record always wins. Without
one, projects fall back to an exact name match and users to an email match,
then to a first + last name match. Among several fallback candidates the
first one in Forecast listing order is used, so duplicate names resolve the
same way on every run.
"""

from models import (
    DestinationPerson,
    DestinationProject,
    LinkResult,
    SourceProject,
    SourceUser,
)


def link_projects(
    sources: list[SourceProject], candidates: list[DestinationProject]
) -> dict[int, LinkResult]:
    """Link each Harvest project to a non-archived Forecast project."""
    pool = [c for c in candidates if not c.archived]
    links = {}
    for project in sources:
        result = LinkResult(project.id)
        for candidate in pool:
            if candidate.linked_source_id and candidate.linked_source_id == project.id:
                result = LinkResult(project.id, candidate.id, "explicit")
                break
            if result.method is None and project.name and candidate.name == project.name:
                result = LinkResult(project.id, candidate.id, "name")
        links[project.id] = result
    return links


def link_users(
    sources: list[SourceUser], candidates: list[DestinationPerson]
) -> dict[int, LinkResult]:
    """Link each Harvest user to a non-archived Forecast person."""
    pool = [c for c in candidates if not c.archived]
    links = {}
    for user in sources:
        explicit = email_match = name_match = None
        for candidate in pool:
            if candidate.linked_source_user_id and candidate.linked_source_user_id == user.id:
                explicit = candidate
                break
            if email_match is None and user.email and candidate.email == user.email:
                email_match = candidate
            elif (
                name_match is None
                and user.first_name
                and user.last_name
                and candidate.first_name == user.first_name
                and candidate.last_name == user.last_name
            ):
                name_match = candidate

        if explicit:
            links[user.id] = LinkResult(user.id, explicit.id, "explicit")
        elif email_match:
            links[user.id] = LinkResult(user.id, email_match.id, "email")
        elif name_match:
            links[user.id] = LinkResult(user.id, name_match.id, "name")
        else:
            links[user.id] = LinkResult(user.id)
    return links
