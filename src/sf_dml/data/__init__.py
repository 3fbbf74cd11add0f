from .query_builder import select, SoqlQuery, QueryResult
from .sobject import SObject, SObjectList

__all__ = ["select", "SoqlQuery", "QueryResult", "SObject", "SObjectList"]
