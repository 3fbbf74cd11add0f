from .client import SalesforceClient
from .auth import SalesforceToken, SalesforceAuth, lazy_login, cli_login
from .data.sobject import SObject, SObjectList
from .data.query_builder import SoqlQuery, select
from .data.standard import Account, Case, Contact, Lead, Opportunity
from . import recipes

__all__ = [
    "SalesforceClient",
    "SalesforceAuth",
    "SalesforceToken",
    "SObject",
    "SObjectList",
    "SoqlQuery",
    "select",
    "lazy_login",
    "cli_login",
    "Account",
    "Case",
    "Contact",
    "Lead",
    "Opportunity",
    "recipes",
]
