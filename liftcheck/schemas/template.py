"""Schemas template inspection / Inspection template schemas.

Definitions immuables lues par le moteur / Immutable definitions read by the engine.
Each item kind is its own model carrying only the fields it needs; the
``kind`` field discriminates the union.
"""

from typing import Annotated, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from liftcheck.models.template import CraneType, InspectionType


class _TemplateItemBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    sort_order: int = 0
    required: bool = True
    optional_comment: bool = False
    optional_photo: bool = False


class ChecklistItem(_TemplateItemBase):
    kind: Literal["checklist"] = "checklist"


class SingleSelectItem(_TemplateItemBase):
    kind: Literal["single_select"] = "single_select"
    options: tuple[str, ...]
    conditional_comment_on: str | None = None

    @model_validator(mode="after")
    def _trigger_is_an_option(self):
        if self.conditional_comment_on is not None and self.conditional_comment_on not in self.options:
            raise ValueError(
                f"conditional_comment_on '{self.conditional_comment_on}' is not one of the options"
            )
        return self


class NumericItem(_TemplateItemBase):
    kind: Literal["numeric"] = "numeric"


class DateItem(_TemplateItemBase):
    kind: Literal["date"] = "date"


class TextItem(_TemplateItemBase):
    kind: Literal["text"] = "text"


class PhotoRequiredItem(_TemplateItemBase):
    kind: Literal["photo_required"] = "photo_required"


TemplateItem = Annotated[
    Union[ChecklistItem, SingleSelectItem, NumericItem, DateItem, TextItem, PhotoRequiredItem],
    Field(discriminator="kind"),
]


class TemplateSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    sort_order: int = 0
    items: tuple[TemplateItem, ...] = ()


class InspectionTemplate(BaseModel):
    """Template versionne / Versioned inspection template."""
    model_config = ConfigDict(frozen=True)

    id: str
    version: int = 1
    name: str
    crane_type: CraneType
    inspection_type: InspectionType
    is_active: bool = True
    created_at: str | None = None
    sections: tuple[TemplateSection, ...] = ()

    @model_validator(mode="after")
    def _unique_item_ids(self):
        seen: set[str] = set()
        for _, item in self.iter_items():
            if item.id in seen:
                raise ValueError(f"Duplicate template item id '{item.id}'")
            seen.add(item.id)
        return self

    def ordered_sections(self) -> list[TemplateSection]:
        return sorted(self.sections, key=lambda s: s.sort_order)

    def iter_items(self) -> Iterator[tuple[TemplateSection, TemplateItem]]:
        """Parcourir (section, item) dans l'ordre d'affichage / Walk (section, item) in display order."""
        for section in self.ordered_sections():
            for item in sorted(section.items, key=lambda i: i.sort_order):
                yield section, item

    def get_item(self, item_id: str) -> TemplateItem | None:
        for _, item in self.iter_items():
            if item.id == item_id:
                return item
        return None

    def get_section(self, section_id: str) -> TemplateSection | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None


class TemplateSummary(BaseModel):
    """Vue liste des templates / Template list view."""
    id: str
    version: int
    name: str
    crane_type: str
    inspection_type: str
    is_active: bool
    item_count: int
