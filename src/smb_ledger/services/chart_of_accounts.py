"""Businesses, accounts and categories."""

from uuid import UUID

from smb_ledger.domain.chart_of_accounts import build_default_accounts
from smb_ledger.domain.entities import Account, Business, Category
from smb_ledger.domain.value_objects import (
    AccountSubType,
    AccountType,
    BalanceType,
    Currency,
    TransactionType,
)
from smb_ledger.exceptions import (
    AccountInUseError,
    AccountNotFoundError,
    BusinessNotFoundError,
    DuplicateAccountCodeError,
    ValidationError,
)
from smb_ledger.logging_config import get_logger
from smb_ledger.repositories.interfaces import (
    AccountRepository,
    BusinessRepository,
    CategoryRepository,
    LedgerDatabase,
)
from smb_ledger.services.interfaces import ChartOfAccountsService

logger = get_logger(__name__)


class ChartOfAccountsServiceImpl(ChartOfAccountsService):
    """Account provisioning and lifecycle.

    Balances are never written here; they only move through the ledger
    services.
    """

    def __init__(
        self,
        database: LedgerDatabase,
        business_repo: BusinessRepository,
        account_repo: AccountRepository,
        category_repo: CategoryRepository,
    ) -> None:
        self._db = database
        self._business_repo = business_repo
        self._account_repo = account_repo
        self._category_repo = category_repo

    def create_business(self, name: str, currency: Currency = Currency.USD) -> Business:
        name = name.strip()
        if not name:
            raise ValidationError("Business name is required")
        if self._business_repo.get_by_name(name) is not None:
            raise ValidationError(
                f"Business already exists: {name}", context={"name": name}
            )
        business = Business(name=name, currency=currency)
        self._business_repo.add(business)
        logger.info("business_created", business_id=str(business.id), name=name)
        return business

    def get_business(self, business_id: UUID) -> Business:
        business = self._business_repo.get(business_id)
        if business is None:
            raise BusinessNotFoundError(business_id)
        return business

    def list_businesses(self) -> list[Business]:
        return list(self._business_repo.list_all())

    def delete_business(self, business_id: UUID) -> None:
        self.get_business(business_id)
        self._business_repo.delete(business_id)
        logger.info("business_deleted", business_id=str(business_id))

    def create_account(
        self,
        business_id: UUID,
        code: str,
        name: str,
        account_type: AccountType,
        sub_type: AccountSubType | None = None,
        normal_balance: BalanceType | None = None,
        description: str | None = None,
    ) -> Account:
        """Add an account to a business's chart.

        Raises:
            BusinessNotFoundError: If the business does not exist
            DuplicateAccountCodeError: If the code is already used in the business
            NormalBalanceMismatchError: If normal_balance contradicts account_type
        """
        business = self.get_business(business_id)
        code = code.strip()
        if not code:
            raise ValidationError("Account code is required")
        if self._account_repo.get_by_code(code, business_id) is not None:
            raise DuplicateAccountCodeError(code, business_id)

        account = Account(
            business_id=business_id,
            code=code,
            name=name.strip(),
            account_type=account_type,
            sub_type=sub_type,
            normal_balance=normal_balance,
            currency=business.currency,
            description=description,
        )
        self._account_repo.add(account)
        return account

    def provision_default_chart(self, business_id: UUID) -> int:
        business = self.get_business(business_id)
        existing = {
            account.code for account in self._account_repo.list_by_business(business_id)
        }
        created = 0
        with self._db.atomic():
            for account in build_default_accounts(business_id, business.currency):
                if account.code in existing:
                    continue
                self._account_repo.add(account)
                created += 1
        logger.info(
            "default_chart_provisioned", business_id=str(business_id), created=created
        )
        return created

    def get_account(self, account_id: UUID) -> Account:
        account = self._account_repo.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def get_account_by_code(self, business_id: UUID, code: str) -> Account:
        account = self._account_repo.get_by_code(code, business_id)
        if account is None:
            raise AccountNotFoundError(code)
        return account

    def list_accounts(self, business_id: UUID, active_only: bool = False) -> list[Account]:
        return list(self._account_repo.list_by_business(business_id, active_only))

    def update_account(
        self,
        account_id: UUID,
        name: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> Account:
        account = self.get_account(account_id)
        if name is not None:
            account.name = name.strip()
        if description is not None:
            account.description = description
        if is_active is True:
            account.activate()
        elif is_active is False:
            account.deactivate()
        self._account_repo.update(account)
        return account

    def delete_account(self, account_id: UUID) -> None:
        self.get_account(account_id)
        references = self._account_repo.count_references(account_id)
        if references:
            raise AccountInUseError(account_id, references)
        self._account_repo.delete(account_id)

    def create_category(
        self,
        business_id: UUID,
        name: str,
        category_type: TransactionType | None = None,
        description: str | None = None,
    ) -> Category:
        self.get_business(business_id)
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        if self._category_repo.get_by_name(name, business_id) is not None:
            raise ValidationError(
                f"Category already exists: {name}", context={"name": name}
            )
        category = Category(
            business_id=business_id,
            name=name,
            category_type=category_type,
            description=description,
        )
        self._category_repo.add(category)
        return category

    def list_categories(self, business_id: UUID) -> list[Category]:
        return list(self._category_repo.list_by_business(business_id))
