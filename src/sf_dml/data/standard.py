"""Schemas for the standard objects the recipes work with"""

from .fields import (
    DateField,
    DateTimeField,
    FieldFlag,
    IdField,
    NumberField,
    TextField,
)
from .sobject import SObject


class Account(SObject):
    Id = IdField()
    Name = TextField()
    Industry = TextField()
    Description = TextField()
    CreatedDate = DateTimeField(FieldFlag.readonly)


class Contact(SObject):
    Id = IdField()
    FirstName = TextField()
    LastName = TextField()
    AccountId = IdField()


class Opportunity(SObject):
    Id = IdField()
    Name = TextField()
    StageName = TextField()
    CloseDate = DateField()
    Amount = NumberField()
    AccountId = IdField()


class Lead(SObject):
    Id = IdField()
    FirstName = TextField()
    LastName = TextField()
    Company = TextField()
    Status = TextField()


class Case(SObject):
    Id = IdField()
    AccountId = IdField()
    Subject = TextField()
    Status = TextField()
    Origin = TextField()


__all__ = ["Account", "Contact", "Opportunity", "Lead", "Case"]
