# Overview: Permission group labels, in the order the admin screens list them.


class PermissionCategory:
    """Permission groups for organization and UI display."""
    PRODUCTS = "Produtos"
    ENTRIES = "Entradas"
    SUPPLIERS = "Fornecedores"
    SALES = "Vendas"
    REPORTS = "Relatórios"
    CLIENTS = "Clientes"
    USERS = "Usuários"
    ROLES = "Cargos"
    SYSTEM = "Sistema"


CATEGORY_ORDER = [
    PermissionCategory.PRODUCTS,
    PermissionCategory.ENTRIES,
    PermissionCategory.SUPPLIERS,
    PermissionCategory.SALES,
    PermissionCategory.REPORTS,
    PermissionCategory.CLIENTS,
    PermissionCategory.USERS,
    PermissionCategory.ROLES,
    PermissionCategory.SYSTEM,
]
