"""
Create / update / upsert / delete recipes for the standard CRM objects.

Each function is independent: it reads what it needs, performs one write
(or one batch write per object type), and returns. A batch upsert is one
``save_list`` call: records with an Id go out as collection updates and
records without one as collection inserts, so a mixed batch takes one PATCH
and one POST per 200 records. Nothing is retried or rolled back; errors from
the API propagate to the caller.

Every recipe accepts an optional ``sf_client``. When it is omitted the client
registered under the record type's connection name is used.
"""

import calendar
import datetime
from collections.abc import Iterable

from .client import SalesforceClient
from .data.query_builder import select
from .data.sobject import SObjectList
from .data.standard import Account, Case, Contact, Lead, Opportunity
from ._models import SObjectSaveResult
from .io.api import (
    delete_list,
    fetch,
    save_insert,
    save_insert_list,
    save_list,
    save_update,
    update_record,
)
from .logger import getLogger

LOGGER = getLogger("recipes")

NORMALIZED_STAGE = "Qualification"
NORMALIZED_AMOUNT = 50000.0
NORMALIZED_CLOSE_MONTHS = 3

NEW_OPPORTUNITY_STAGE = "Prospecting"
NEW_OPPORTUNITY_CLOSE_DAYS = 30

MARKER_NEW = "New"
MARKER_UPDATED = "Updated"

NEW_LEAD_STATUS = "Open - Not Contacted"


def add_months(start: datetime.date, months: int) -> datetime.date:
    """Calendar month arithmetic; the day is clamped to the end of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


def find_account_by_name(
    name: str, sf_client: SalesforceClient | None = None
) -> Account | None:
    result = select(Account).where(Name=name).limit(1).execute(sf_client)
    return next(iter(result.records), None)


def create_account(
    name: str, industry: str, sf_client: SalesforceClient | None = None
) -> None:
    """Insert one Account. Duplicate names are not checked."""
    save_insert(Account(Name=name, Industry=industry), sf_client)


def create_contact(
    account_id: str,
    last_name: str = "Contact",
    sf_client: SalesforceClient | None = None,
) -> str:
    """Insert one Contact under ``account_id`` and return its Id."""
    contact = Contact(LastName=last_name, AccountId=account_id)
    save_insert(contact, sf_client)
    return contact.Id


def update_account_industry(
    account_id: str, industry: str, sf_client: SalesforceClient | None = None
) -> Account:
    account = fetch(Account, account_id, sf_client)
    account.Industry = industry
    save_update(account, sf_client, only_changes=True)
    return account


def update_contact_name(
    contact_id: str,
    first_name: str,
    last_name: str,
    sf_client: SalesforceClient | None = None,
) -> Contact:
    contact = fetch(Contact, contact_id, sf_client)
    update_record(contact, FirstName=first_name, LastName=last_name)
    save_update(contact, sf_client, only_changes=True)
    return contact


def update_lead_status(
    lead_id: str, status: str, sf_client: SalesforceClient | None = None
) -> Lead:
    lead = fetch(Lead, lead_id, sf_client)
    lead.Status = status
    save_update(lead, sf_client, only_changes=True)
    return lead


def normalize_and_upsert_opportunities(
    opportunities: Iterable[Opportunity],
    sf_client: SalesforceClient | None = None,
) -> list[SObjectSaveResult]:
    """
    Overwrite stage, close date and amount on every Opportunity, then write
    them with one batch upsert. Opportunities with an Id are updated, the rest
    created; a mixed list is sent as an update request followed by an insert
    request.
    """
    opportunities = SObjectList(opportunities)
    close_date = add_months(datetime.date.today(), NORMALIZED_CLOSE_MONTHS)
    for opportunity in opportunities:
        opportunity.StageName = NORMALIZED_STAGE
        opportunity.CloseDate = close_date
        opportunity.Amount = NORMALIZED_AMOUNT
    return save_list(opportunities, sf_client)


def reconcile_opportunities_by_name(
    account_name: str,
    opportunity_names: Iterable[str],
    sf_client: SalesforceClient | None = None,
) -> SObjectList[Opportunity]:
    """
    Make sure the named Account has one Opportunity per requested name.

    The Account is created when missing. Opportunities that already exist
    under it are moved to Qualification; names with no match get a new
    Prospecting Opportunity. Both sets go through one batch upsert (updates,
    then inserts).
    """
    account = find_account_by_name(account_name, sf_client)
    if account is None:
        account = Account(Name=account_name)
        save_insert(account, sf_client)

    existing = {
        opportunity.Name: opportunity
        for opportunity in select(Opportunity)
        .where(AccountId=account.Id)
        .execute(sf_client)
    }

    today = datetime.date.today()
    to_save: SObjectList[Opportunity] = SObjectList()
    # dict.fromkeys drops repeated names while keeping their order
    for name in dict.fromkeys(opportunity_names):
        if (opportunity := existing.get(name)) is not None:
            opportunity.StageName = NORMALIZED_STAGE
            opportunity.CloseDate = add_months(today, NORMALIZED_CLOSE_MONTHS)
        else:
            opportunity = Opportunity(
                Name=name,
                AccountId=account.Id,
                StageName=NEW_OPPORTUNITY_STAGE,
                CloseDate=today + datetime.timedelta(days=NEW_OPPORTUNITY_CLOSE_DAYS),
            )
        to_save.append(opportunity)

    LOGGER.info(
        "Reconciling %d opportunities on %s (%d existing)",
        len(to_save),
        account_name,
        sum(1 for opportunity in to_save if opportunity.Id),
    )
    save_list(to_save, sf_client)
    return to_save


def upsert_account_with_marker(
    account_name: str, sf_client: SalesforceClient | None = None
) -> SObjectList[Account]:
    """
    Mark the named Account's Description as "Updated", or create it as "New".

    When the Account exists, the found record is left as is and a second,
    separately built Account carrying the "Updated" marker is added to the
    batch, so two rows are written.
    """
    accounts = (
        select(Account).where(Name=account_name).limit(1).execute(sf_client).as_list()
    )
    if accounts:
        accounts.append(Account(Name=account_name, Description=MARKER_UPDATED))
    else:
        accounts.append(Account(Name=account_name, Description=MARKER_NEW))
    save_list(accounts, sf_client)
    return accounts


def link_contacts_by_last_name(
    contacts: Iterable[Contact], sf_client: SalesforceClient | None = None
) -> SObjectList[Contact]:
    """
    Point each Contact at the Account whose Name equals the Contact's last
    name, creating one Account for every last name without a match. Accounts
    are written first so their Ids exist when the Contacts are saved.
    """
    contacts = SObjectList(contacts)
    last_names = list(dict.fromkeys(contact.LastName for contact in contacts))
    if not last_names:
        return contacts

    accounts_by_name: dict[str, Account] = {}
    for account in select(Account).where(Name__in=last_names).execute(sf_client):
        accounts_by_name.setdefault(account.Name, account)

    new_accounts = SObjectList(
        Account(Name=name) for name in last_names if name not in accounts_by_name
    )
    save_insert_list(new_accounts, sf_client)
    accounts_by_name.update((account.Name, account) for account in new_accounts)

    for contact in contacts:
        contact.AccountId = accounts_by_name[contact.LastName].Id
    save_list(contacts, sf_client)
    return contacts


def create_and_delete_leads(
    last_names: Iterable[str],
    company: str = "Acme",
    sf_client: SalesforceClient | None = None,
) -> list[str]:
    """Insert one Lead per last name, then delete the same batch. Returns the deleted Ids."""
    leads = SObjectList(
        Lead(LastName=name, Company=company, Status=NEW_LEAD_STATUS)
        for name in last_names
    )
    save_insert_list(leads, sf_client)
    lead_ids = [lead.Id for lead in leads]
    delete_list(leads, sf_client)
    return lead_ids


def create_and_delete_cases(
    account_id: str, count: int, sf_client: SalesforceClient | None = None
) -> list[str]:
    """Insert ``count`` Cases for the Account, then delete them. Returns the deleted Ids."""
    cases = SObjectList(
        Case(
            AccountId=account_id,
            Subject=f"Case {number}",
            Status="New",
            Origin="Web",
        )
        for number in range(1, count + 1)
    )
    save_insert_list(cases, sf_client)
    case_ids = [case.Id for case in cases]
    delete_list(cases, sf_client)
    return case_ids
