"""
Module: contract_kernel.models.contract
Responsibility: ORM persistence for contracts, their review state, and the
    financial inputs the approval core reads from them: line items and
    execution cost entries.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, or outer layers (domain DTO
    conversion imports lazily).

Invariants enforced:
    - Monetary columns are Numeric(38, 9); quantities and prices are
      non-negative (check constraints).
    - Line items and costs keep their entry order through ``position``.
    - ``status`` is one of the contract review stages (check constraint);
      ``row_version`` guards review transitions against lost updates.

Audit relevance:
    These rows are the source of the financial snapshot frozen into a
    business plan at submission.  Later edits do not change a frozen
    snapshot.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contract_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from contract_kernel.domain.contract_review import ContractState
    from contract_kernel.domain.financials import ExecutionCost, LineItem


class ContractModel(Base):
    """A customer contract: the inputs of its financial totals and its review state."""

    __tablename__ = "contracts"

    __table_args__ = (
        CheckConstraint(
            "supplier_discount_percent >= 0",
            name="ck_contracts_discount_non_negative",
        ),
        CheckConstraint(
            "status IN ('Draft', 'Pending_Legal', 'Pending_Finance', "
            "'Finance_Approved', 'Pending_Sign', 'Active')",
            name="ck_contracts_valid_status",
        ),
    )

    contract_number: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    supplier_discount_percent: Mapped[Decimal] = mapped_column(
        default=Decimal("0"), nullable=False,
    )
    status: Mapped[str] = mapped_column(String(30), default="Draft", nullable=False)
    draft_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    signed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    signed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    row_version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

    line_items: Mapped[list["LineItemModel"]] = relationship(
        "LineItemModel",
        back_populates="contract",
        order_by="LineItemModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    execution_costs: Mapped[list["ExecutionCostModel"]] = relationship(
        "ExecutionCostModel",
        back_populates="contract",
        order_by="ExecutionCostModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Contract {self.contract_number} status={self.status}>"

    def to_state(self) -> ContractState:
        """Review state of this contract as a frozen domain DTO."""
        from contract_kernel.domain.contract_review import ContractState, ContractStatus

        return ContractState(
            contract_id=self.id,
            status=ContractStatus(self.status),
            draft_url=self.draft_url,
            signed_date=self.signed_date,
            signed_by=self.signed_by,
        )

    def apply_state(self, state: ContractState) -> None:
        self.status = state.status.value
        self.draft_url = state.draft_url
        self.signed_date = state.signed_date
        self.signed_by = state.signed_by


class LineItemModel(Base):
    """A product/service line of a contract."""

    __tablename__ = "contract_line_items"

    __table_args__ = (
        Index("ix_contract_line_items_contract", "contract_id", "position"),
        CheckConstraint(
            "quantity >= 0 AND input_price >= 0 AND output_price >= 0 AND direct_costs >= 0",
            name="ck_contract_line_items_non_negative",
        ),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("contracts.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    supplier: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    input_price: Mapped[Decimal] = mapped_column(nullable=False)
    output_price: Mapped[Decimal] = mapped_column(nullable=False)
    direct_costs: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    contract: Mapped[ContractModel] = relationship(back_populates="line_items")

    def to_dto(self) -> LineItem:
        """Convert ORM model to frozen domain DTO."""
        from contract_kernel.domain.financials import LineItem

        return LineItem(
            name=self.name,
            quantity=self.quantity,
            input_price=self.input_price,
            output_price=self.output_price,
            direct_costs=self.direct_costs,
            supplier=self.supplier,
        )

    @classmethod
    def from_dto(cls, dto: LineItem, position: int = 0) -> LineItemModel:
        return cls(
            position=position,
            name=dto.name,
            supplier=dto.supplier,
            quantity=dto.quantity,
            input_price=dto.input_price,
            output_price=dto.output_price,
            direct_costs=dto.direct_costs,
        )


class ExecutionCostModel(Base):
    """A named execution cost of a contract."""

    __tablename__ = "contract_execution_costs"

    __table_args__ = (
        Index("ix_contract_execution_costs_contract", "contract_id", "position"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("contracts.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    requires_external_expert: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    contract: Mapped[ContractModel] = relationship(back_populates="execution_costs")

    def to_dto(self) -> ExecutionCost:
        """Convert ORM model to frozen domain DTO."""
        from contract_kernel.domain.financials import ExecutionCost

        return ExecutionCost(
            name=self.name,
            amount=self.amount,
            percentage=self.percentage,
            requires_external_expert=self.requires_external_expert,
        )

    @classmethod
    def from_dto(cls, dto: ExecutionCost, position: int = 0) -> ExecutionCostModel:
        return cls(
            position=position,
            name=dto.name,
            amount=dto.amount,
            percentage=dto.percentage,
            requires_external_expert=dto.requires_external_expert,
        )
