"""
Module: estate_modules.leasing.orm
Responsibility:
    SQLAlchemy ORM persistence models for the leasing module.  Maps the
    frozen dataclass DTOs from ``estate_modules.leasing.models`` to
    relational tables.

Architecture position:
    **Modules layer** -- ORM models inheriting from ``TrackedBase``
    (kernel DB base).  Only ``SqlAlchemyLeaseRepository`` touches them.

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9) via Base).
    - Enum fields stored as String(50) for safe serialization.
    - ``InstallmentModel.version`` is the optimistic-lock counter; every
      update goes through a version-checked UPDATE in the repository.
    - Transactions are insert-only.  No code path updates or deletes a
      ``TransactionModel`` row.
    - Derived installment status is NOT a column.

Failure modes:
    - IntegrityError on duplicate unique constraints.
    - ForeignKey violation on invalid parent references.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from estate_kernel.db.base import TrackedBase, UUIDString
from estate_kernel.db.types import RateType, ShortCodeType
from estate_kernel.domain.money import round_money


def _money(value: Decimal | None) -> Decimal | None:
    return round_money(value) if value is not None else None


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else value


# =============================================================================
# Lease
# =============================================================================


class LeaseModel(TrackedBase):
    """
    A tenancy agreement between a tenant and a unit.

    Guarantees:
        - ``status`` is one of: Active, Expired, Completed,
          Completed with Dues, Renewed.
        - ``predecessor_lease_id`` references leasing_leases.id.
        - All monetary fields are Decimal (Numeric(38,9)).
    """

    __tablename__ = "leasing_leases"

    __table_args__ = (
        Index("idx_leasing_lease_unit", "unit_id"),
        Index("idx_leasing_lease_tenant", "tenant_id"),
        Index("idx_leasing_lease_status", "status"),
    )

    unit_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(ShortCodeType, default="Active")
    total_lease_amount: Mapped[Decimal] = mapped_column(nullable=False)
    taxed_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    tax_rate: Mapped[Decimal] = mapped_column(RateType, default=Decimal("0"))
    number_of_payments: Mapped[int] = mapped_column(nullable=False)
    renewal_increase_percentage: Mapped[Decimal | None] = mapped_column(RateType, nullable=True)
    rent_payment_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    predecessor_lease_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("leasing_leases.id"),
        nullable=True,
    )
    # No FK: the successor row is inserted after this one is closed.
    successor_lease_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    tenant_since: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self):
        from estate_modules.leasing.models import Lease, LeaseStatus

        return Lease(
            id=self.id,
            unit_id=self.unit_id,
            tenant_id=self.tenant_id,
            start_date=self.start_date,
            end_date=self.end_date,
            total_lease_amount=_money(self.total_lease_amount),
            number_of_payments=self.number_of_payments,
            status=LeaseStatus(self.status),
            taxed_amount=_money(self.taxed_amount),
            tax_rate=self.tax_rate.normalize(),
            renewal_increase_percentage=(
                self.renewal_increase_percentage.normalize()
                if self.renewal_increase_percentage is not None
                else None
            ),
            rent_payment_amount=_money(self.rent_payment_amount),
            predecessor_lease_id=self.predecessor_lease_id,
            successor_lease_id=self.successor_lease_id,
            tenant_since=self.tenant_since,
        )

    @classmethod
    def from_dto(cls, dto) -> "LeaseModel":
        return cls(
            id=dto.id,
            unit_id=dto.unit_id,
            tenant_id=dto.tenant_id,
            start_date=dto.start_date,
            end_date=dto.end_date,
            status=_enum_value(dto.status),
            total_lease_amount=dto.total_lease_amount,
            taxed_amount=dto.taxed_amount,
            tax_rate=dto.tax_rate,
            number_of_payments=dto.number_of_payments,
            renewal_increase_percentage=dto.renewal_increase_percentage,
            rent_payment_amount=dto.rent_payment_amount,
            predecessor_lease_id=dto.predecessor_lease_id,
            successor_lease_id=dto.successor_lease_id,
            tenant_since=dto.tenant_since,
        )

    def __repr__(self) -> str:
        return f"<LeaseModel {self.id} ({self.status})>"


# =============================================================================
# Installment
# =============================================================================


class InstallmentModel(TrackedBase):
    """
    One scheduled payment obligation.

    Guarantees:
        - ``lease_id`` references leasing_leases.id and changes only when an
          installment is carried into a renewal.
        - ``version`` increases by one on every update.
    """

    __tablename__ = "leasing_installments"

    __table_args__ = (
        Index("idx_leasing_installment_lease", "lease_id"),
        Index("idx_leasing_installment_due", "due_date"),
        Index("idx_leasing_installment_extension", "extension_status"),
    )

    lease_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("leasing_leases.id"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(default=0)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    extension_requested: Mapped[bool] = mapped_column(Boolean, default=False)
    requested_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    extension_status: Mapped[str] = mapped_column(ShortCodeType, default="None")
    extension_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(default=0, nullable=False)

    def to_dto(self):
        from estate_modules.leasing.models import ExtensionStatus, Installment

        return Installment(
            id=self.id,
            lease_id=self.lease_id,
            due_date=self.due_date,
            amount=_money(self.amount),
            tax_amount=_money(self.tax_amount),
            total_amount=_money(self.total_amount),
            description=self.description or "",
            sequence=self.sequence,
            extension_requested=bool(self.extension_requested),
            requested_due_date=self.requested_due_date,
            extension_status=ExtensionStatus(self.extension_status),
            extension_reason=self.extension_reason,
            manager_notes=self.manager_notes,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto) -> "InstallmentModel":
        return cls(
            id=dto.id,
            lease_id=dto.lease_id,
            sequence=dto.sequence,
            due_date=dto.due_date,
            amount=dto.amount,
            tax_amount=dto.tax_amount,
            total_amount=dto.total_amount,
            description=dto.description,
            extension_requested=dto.extension_requested,
            requested_due_date=dto.requested_due_date,
            extension_status=_enum_value(dto.extension_status),
            extension_reason=dto.extension_reason,
            manager_notes=dto.manager_notes,
            version=dto.version,
        )

    def __repr__(self) -> str:
        return (
            f"<InstallmentModel {self.id} lease={self.lease_id} "
            f"#{self.sequence} v{self.version}>"
        )


# =============================================================================
# Transaction
# =============================================================================


class TransactionModel(TrackedBase):
    """
    A recorded payment against one installment.

    Guarantees:
        - ``installment_id`` references leasing_installments.id.
        - ``amount_paid`` > 0 (checked by the ledger before insert).
    """

    __tablename__ = "leasing_transactions"

    __table_args__ = (
        Index("idx_leasing_transaction_installment", "installment_id"),
        Index("idx_leasing_transaction_date", "payment_date"),
    )

    installment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("leasing_installments.id"),
        nullable=False,
    )
    amount_paid: Mapped[Decimal] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str | None] = mapped_column(ShortCodeType, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    document_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def to_dto(self):
        from estate_modules.leasing.models import Transaction

        return Transaction(
            id=self.id,
            installment_id=self.installment_id,
            amount_paid=_money(self.amount_paid),
            payment_date=self.payment_date,
            payment_method=self.payment_method,
            notes=self.notes,
            document_url=self.document_url,
        )

    @classmethod
    def from_dto(cls, dto) -> "TransactionModel":
        return cls(
            id=dto.id,
            installment_id=dto.installment_id,
            amount_paid=dto.amount_paid,
            payment_date=dto.payment_date,
            payment_method=dto.payment_method,
            notes=dto.notes,
            document_url=dto.document_url,
        )

    def __repr__(self) -> str:
        return f"<TransactionModel {self.id} {self.amount_paid} on {self.payment_date}>"
