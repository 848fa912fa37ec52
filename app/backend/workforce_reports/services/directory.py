"""Label lookups for technicians, users and projects within one tenant."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from workforce_reports.models.entities import Project, Technician, User


@dataclass(frozen=True)
class TenantDirectory:
    technicians: dict[int, Technician]
    users: dict[int, User]
    projects: dict[int, Project]

    @classmethod
    def build(
        cls,
        *,
        technicians: Iterable[Technician],
        users: Iterable[User],
        projects: Iterable[Project],
    ) -> TenantDirectory:
        return cls(
            technicians={row.id: row for row in technicians},
            users={row.id: row for row in users},
            projects={row.id: row for row in projects},
        )

    def technician(self, technician_id: int) -> Technician:
        technician = self.technicians.get(technician_id)
        if technician is None:
            raise RuntimeError(f"Entry references unknown technician {technician_id}.")
        return technician

    def user_id_for(self, technician_id: int) -> int:
        return self.technician(technician_id).user_id

    def user_label(self, technician_id: int) -> str:
        technician = self.technician(technician_id)
        user = self.users.get(technician.user_id)
        return user.name if user is not None else technician.name

    def project_label(self, project_id: int) -> str:
        project = self.projects.get(project_id)
        if project is None:
            raise RuntimeError(f"Entry references unknown project {project_id}.")
        return project.name
