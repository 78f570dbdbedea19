"""Directory-side view of an externally governed group."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryGroup:
    """A group defined under a directory stem.

    Attributes:
        external_key: Full directory name, used as the local ``authman_group``
        display_extension: Short display name within the stem
        description: Free-text description; may embed the title and admins
    """

    external_key: str
    display_extension: str = ""
    description: str = ""

    def title_and_admins(self) -> tuple[str, list[str]]:
        """Derive the local title and the directory-declared admins.

        Descriptions of the form ``"Title"|uin1|uin2`` carry the title in
        the first segment and admin external ids in the others. Otherwise
        the description, or failing that the display extension, is the title.

        Returns:
            Tuple of (title, admin external ids)
        """
        if "|" in self.description:
            title, *rest = self.description.split("|")
            admins = [segment.replace(" ", "") for segment in rest]
            return title.replace('"', "").strip(), [a for a in admins if a]

        if self.description:
            return self.description, []
        return self.display_extension, []
