import logging
import os

from sf_dml import SalesforceClient, recipes
from sf_dml.auth import cli_login
from sf_dml.data.standard import Contact, Opportunity

logging.basicConfig(level=logging.INFO)


def walkthrough():
    recipes.create_account("Acme", "Technology")
    account = recipes.find_account_by_name("Acme")
    assert account is not None
    print(account.Name, account.Industry, sep=" | ")

    recipes.update_account_industry(account.Id, "Energy")
    contact_id = recipes.create_contact(account.Id)
    recipes.update_contact_name(contact_id, "Ada", "Lovelace")

    results = recipes.normalize_and_upsert_opportunities(
        [
            Opportunity(Name="Acme - Renewal", AccountId=account.Id),
            Opportunity(Name="Acme - Expansion", AccountId=account.Id),
        ]
    )
    print(*results, sep="\n")

    opportunities = recipes.reconcile_opportunities_by_name(
        "Acme", ["Acme - Renewal", "Acme - Services"]
    )
    for opportunity in opportunities:
        print(opportunity.Name, opportunity.StageName, opportunity.CloseDate, sep=" | ")

    recipes.upsert_account_with_marker("Acme")

    contacts = recipes.link_contacts_by_last_name(
        [Contact(FirstName="Grace", LastName="Hopper"), Contact(LastName="Acme")]
    )
    print(*(f"{c.LastName} -> {c.AccountId}" for c in contacts), sep="\n")

    print(recipes.create_and_delete_leads(["Turing", "Babbage"]), "leads deleted")
    print(recipes.create_and_delete_cases(account.Id, 3), "cases deleted")


with SalesforceClient(login=cli_login(os.environ.get("SF_ORG_ALIAS"))) as client:
    walkthrough()
