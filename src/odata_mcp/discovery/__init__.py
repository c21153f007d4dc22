"""
Discovery module for OData namespaces.

This module loads metadata documents and manages the namespaces the router serves.
"""
from odata_mcp.discovery.loader import MetadataLoader
from odata_mcp.discovery.manager import NamespaceManager

__all__ = ['MetadataLoader', 'NamespaceManager']
