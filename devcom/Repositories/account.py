# devcom/Repositories/account.py

from typing import Optional

from sqlalchemy.orm import Session

from devcom.Models.account import Account


def get_account_by_id(db: Session, account_id: str) -> Optional[Account]:
    """
    Get an account by its ID.

    Args:
        db: SQLAlchemy session
        account_id: Account identifier (e.g., "acme")

    Returns:
        Account object or None if not found
    """
    return db.query(Account).filter(Account.AccountID == account_id).first()


def create_account(db: Session, account_id: str, description: Optional[str] = None, is_active: bool = True) -> Account:
    """
    Create and commit a new account.

    Args:
        db: SQLAlchemy session
        account_id: Account identifier
        description: Optional human readable name
        is_active: Inactive accounts reject every device they own

    Returns:
        Account: the refreshed row

    Example:
        create_account(db, "acme", description="ACME Logistics")
    """
    new_account = Account(AccountID=account_id, Description=description, IsActive=is_active)
    db.add(new_account)
    db.commit()
    db.refresh(new_account)
    return new_account


def is_account_active(db: Session, account_id: str) -> bool:
    """True when the account exists and is active."""
    account = get_account_by_id(db, account_id)
    return bool(account and account.IsActive)
