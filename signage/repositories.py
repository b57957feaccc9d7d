"""
Repositories for displays, views, content slots and content slot options.

Each entity has a ``Protocol`` describing the persistence operations the
service relies on and a SQLAlchemy implementation bound to one ``Session``.
The SQLAlchemy repositories flush but never commit: the unit of work owns
the transaction. Records are returned as detached pydantic models.
"""

from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy.orm import Session

from signage.db_models import ContentSlot as ContentSlotModel
from signage.db_models import ContentSlotOption as ContentSlotOptionModel
from signage.db_models import Display as DisplayModel
from signage.db_models import View as ViewModel
from signage.exceptions import handle_sqlalchemy_errors
from signage.models import ContentSlot, Display, OptionMap, OptionValue, View


# ============================================================
# Interfaces
# ============================================================


class DisplayRepository(Protocol):
    def create(
        self,
        name: str,
        active: bool,
        client_id: str,
        description: str = "",
        location: str = "",
    ) -> int: ...

    def get(self, display_id: int) -> Optional[Display]: ...

    def get_by_client_id(self, client_id: str) -> Optional[Display]: ...

    def get_many(self, display_ids: Iterable[int]) -> List[Display]: ...

    def list(self) -> List[Display]: ...

    def update(
        self,
        display_id: int,
        name: str,
        active: bool,
        client_id: str,
        description: str,
        location: str,
    ) -> Optional[int]: ...

    def delete(self, display_id: int) -> Optional[Display]: ...


class ViewRepository(Protocol):
    def create(
        self,
        name: str,
        columns: int,
        rows: int,
        display_id: int,
        position: int,
        screen_type: str,
    ) -> int: ...

    def get(self, view_id: int) -> Optional[View]: ...

    def get_many(self, view_ids: Iterable[int]) -> List[View]: ...

    def list_for_display(self, display_id: int) -> List[View]: ...

    def list_for_display_and_screen_type(
        self, display_id: int, screen_type: str
    ) -> List[View]: ...

    def update(
        self,
        view_id: int,
        name: str,
        columns: int,
        rows: int,
        display_id: int,
        position: int,
        screen_type: str,
    ) -> Optional[int]: ...

    def delete(self, view_id: int) -> bool: ...


class ContentSlotRepository(Protocol):
    def create(
        self,
        component_type: str,
        view_id: int,
        column_start: int,
        row_start: int,
        column_end: int,
        row_end: int,
    ) -> int: ...

    def get(self, slot_id: int) -> Optional[ContentSlot]: ...

    def list_for_view(self, view_id: int) -> List[ContentSlot]: ...

    def list_for_component_type(self, component_type: str) -> List[ContentSlot]: ...

    def update(
        self,
        slot_id: int,
        component_type: str,
        view_id: int,
        column_start: int,
        row_start: int,
        column_end: int,
        row_end: int,
    ) -> Optional[int]: ...

    def delete(self, slot_id: int) -> bool: ...


class ContentSlotOptionRepository(Protocol):
    def get_all_for_slot(self, slot_id: int) -> OptionMap: ...

    def create(self, slot_id: int, key: str, value: OptionValue) -> None: ...

    def update(self, slot_id: int, key: str, value: OptionValue) -> bool: ...

    def delete(self, slot_id: int, key: str) -> bool: ...

    def delete_all_for_slot(self, slot_id: int) -> int: ...


# ============================================================
# SQLAlchemy implementations
# ============================================================


def _to_display(row: DisplayModel) -> Display:
    return Display.model_validate(row.to_dict())


def _to_view(row: ViewModel) -> View:
    return View.model_validate(row.to_dict())


def _to_slot(row: ContentSlotModel) -> ContentSlot:
    return ContentSlot.model_validate(row.to_dict())


class SQLAlchemyDisplayRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        name: str,
        active: bool,
        client_id: str,
        description: str = "",
        location: str = "",
    ) -> int:
        display = DisplayModel(
            name=name,
            active=active,
            client_id=client_id,
            description=description,
            location=location,
        )
        self.db.add(display)
        with handle_sqlalchemy_errors("display"):
            self.db.flush()
        return display.id

    def get(self, display_id: int) -> Optional[Display]:
        display = self.db.get(DisplayModel, display_id)
        return _to_display(display) if display else None

    def get_by_client_id(self, client_id: str) -> Optional[Display]:
        display = (
            self.db.query(DisplayModel)
            .filter(DisplayModel.client_id == client_id)
            .first()
        )
        return _to_display(display) if display else None

    def get_many(self, display_ids: Iterable[int]) -> List[Display]:
        ids = list(display_ids)
        if not ids:
            return []
        displays = (
            self.db.query(DisplayModel)
            .filter(DisplayModel.id.in_(ids))
            .order_by(DisplayModel.id)
            .all()
        )
        return [_to_display(d) for d in displays]

    def list(self) -> List[Display]:
        displays = self.db.query(DisplayModel).order_by(DisplayModel.id).all()
        return [_to_display(d) for d in displays]

    def update(
        self,
        display_id: int,
        name: str,
        active: bool,
        client_id: str,
        description: str,
        location: str,
    ) -> Optional[int]:
        display = self.db.get(DisplayModel, display_id)
        if not display:
            return None

        display.name = name
        display.active = active
        display.client_id = client_id
        display.description = description
        display.location = location

        with handle_sqlalchemy_errors("display"):
            self.db.flush()
        return display.id

    def delete(self, display_id: int) -> Optional[Display]:
        display = self.db.get(DisplayModel, display_id)
        if not display:
            return None

        deleted = _to_display(display)
        self.db.delete(display)
        with handle_sqlalchemy_errors("display"):
            self.db.flush()
        return deleted


class SQLAlchemyViewRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        name: str,
        columns: int,
        rows: int,
        display_id: int,
        position: int,
        screen_type: str,
    ) -> int:
        view = ViewModel(
            name=name,
            columns=columns,
            rows=rows,
            display_id=display_id,
            position=position,
            screen_type=screen_type,
        )
        self.db.add(view)
        with handle_sqlalchemy_errors("view"):
            self.db.flush()
        return view.id

    def get(self, view_id: int) -> Optional[View]:
        view = self.db.get(ViewModel, view_id)
        return _to_view(view) if view else None

    def get_many(self, view_ids: Iterable[int]) -> List[View]:
        ids = list(view_ids)
        if not ids:
            return []
        views = (
            self.db.query(ViewModel)
            .filter(ViewModel.id.in_(ids))
            .order_by(ViewModel.id)
            .all()
        )
        return [_to_view(v) for v in views]

    def list_for_display(self, display_id: int) -> List[View]:
        views = (
            self.db.query(ViewModel)
            .filter(ViewModel.display_id == display_id)
            .order_by(ViewModel.screen_type, ViewModel.position)
            .all()
        )
        return [_to_view(v) for v in views]

    def list_for_display_and_screen_type(
        self, display_id: int, screen_type: str
    ) -> List[View]:
        views = (
            self.db.query(ViewModel)
            .filter(
                ViewModel.display_id == display_id,
                ViewModel.screen_type == screen_type,
            )
            .order_by(ViewModel.position)
            .all()
        )
        return [_to_view(v) for v in views]

    def update(
        self,
        view_id: int,
        name: str,
        columns: int,
        rows: int,
        display_id: int,
        position: int,
        screen_type: str,
    ) -> Optional[int]:
        view = self.db.get(ViewModel, view_id)
        if not view:
            return None

        view.name = name
        view.columns = columns
        view.rows = rows
        view.display_id = display_id
        view.position = position
        view.screen_type = screen_type

        with handle_sqlalchemy_errors("view"):
            self.db.flush()
        return view.id

    def delete(self, view_id: int) -> bool:
        view = self.db.get(ViewModel, view_id)
        if not view:
            return False

        self.db.delete(view)
        with handle_sqlalchemy_errors("view"):
            self.db.flush()
        return True


class SQLAlchemyContentSlotRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        component_type: str,
        view_id: int,
        column_start: int,
        row_start: int,
        column_end: int,
        row_end: int,
    ) -> int:
        slot = ContentSlotModel(
            component_type=component_type,
            view_id=view_id,
            column_start=column_start,
            row_start=row_start,
            column_end=column_end,
            row_end=row_end,
        )
        self.db.add(slot)
        with handle_sqlalchemy_errors("content slot"):
            self.db.flush()
        return slot.id

    def get(self, slot_id: int) -> Optional[ContentSlot]:
        slot = self.db.get(ContentSlotModel, slot_id)
        return _to_slot(slot) if slot else None

    def list_for_view(self, view_id: int) -> List[ContentSlot]:
        slots = (
            self.db.query(ContentSlotModel)
            .filter(ContentSlotModel.view_id == view_id)
            .order_by(ContentSlotModel.id)
            .all()
        )
        return [_to_slot(s) for s in slots]

    def list_for_component_type(self, component_type: str) -> List[ContentSlot]:
        slots = (
            self.db.query(ContentSlotModel)
            .filter(ContentSlotModel.component_type == component_type)
            .order_by(ContentSlotModel.id)
            .all()
        )
        return [_to_slot(s) for s in slots]

    def update(
        self,
        slot_id: int,
        component_type: str,
        view_id: int,
        column_start: int,
        row_start: int,
        column_end: int,
        row_end: int,
    ) -> Optional[int]:
        slot = self.db.get(ContentSlotModel, slot_id)
        if not slot:
            return None

        slot.component_type = component_type
        slot.view_id = view_id
        slot.column_start = column_start
        slot.row_start = row_start
        slot.column_end = column_end
        slot.row_end = row_end

        with handle_sqlalchemy_errors("content slot"):
            self.db.flush()
        return slot.id

    def delete(self, slot_id: int) -> bool:
        slot = self.db.get(ContentSlotModel, slot_id)
        if not slot:
            return False

        self.db.delete(slot)
        with handle_sqlalchemy_errors("content slot"):
            self.db.flush()
        return True


class SQLAlchemyContentSlotOptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def _query(self, slot_id: int):
        return self.db.query(ContentSlotOptionModel).filter(
            ContentSlotOptionModel.content_slot_id == slot_id
        )

    def get_all_for_slot(self, slot_id: int) -> OptionMap:
        # Ordered by primary key, i.e. insertion order
        rows = self._query(slot_id).order_by(ContentSlotOptionModel.id).all()
        options: Dict[str, OptionValue] = {}
        for row in rows:
            options[row.key] = row.value
        return options

    def create(self, slot_id: int, key: str, value: OptionValue) -> None:
        self.db.add(
            ContentSlotOptionModel(content_slot_id=slot_id, key=key, value=value)
        )
        with handle_sqlalchemy_errors("content slot option"):
            self.db.flush()

    def update(self, slot_id: int, key: str, value: OptionValue) -> bool:
        option = self._query(slot_id).filter(ContentSlotOptionModel.key == key).first()
        if not option:
            return False

        option.value = value
        with handle_sqlalchemy_errors("content slot option"):
            self.db.flush()
        return True

    def delete(self, slot_id: int, key: str) -> bool:
        with handle_sqlalchemy_errors("content slot option"):
            deleted = (
                self._query(slot_id)
                .filter(ContentSlotOptionModel.key == key)
                .delete(synchronize_session="fetch")
            )
        return deleted > 0

    def delete_all_for_slot(self, slot_id: int) -> int:
        with handle_sqlalchemy_errors("content slot option"):
            return self._query(slot_id).delete(synchronize_session="fetch")
