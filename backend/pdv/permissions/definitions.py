# Overview: The fixed permission key catalog, grouped by category.
# Each permission is defined as: (key, label, category)
# Keys are persisted in internal_permissions and sent to clients verbatim;
# do not rename them.

from .categories import PermissionCategory


# -- PRODUTOS --

PRODUCT_PERMISSIONS = [
    ("products.view", "Visualizar produtos", PermissionCategory.PRODUCTS),
    ("products.create", "Criar produtos", PermissionCategory.PRODUCTS),
    ("products.edit", "Editar produtos", PermissionCategory.PRODUCTS),
    ("products.delete", "Excluir produtos", PermissionCategory.PRODUCTS),
]


# -- ENTRADAS --

ENTRY_PERMISSIONS = [
    ("entries.view", "Visualizar entradas", PermissionCategory.ENTRIES),
    ("entries.create", "Criar entradas", PermissionCategory.ENTRIES),
    ("entries.delete", "Excluir entradas", PermissionCategory.ENTRIES),
]


# -- FORNECEDORES --

SUPPLIER_PERMISSIONS = [
    ("suppliers.view", "Visualizar fornecedores", PermissionCategory.SUPPLIERS),
    ("suppliers.create", "Criar fornecedores", PermissionCategory.SUPPLIERS),
    ("suppliers.edit", "Editar fornecedores", PermissionCategory.SUPPLIERS),
    ("suppliers.delete", "Excluir fornecedores", PermissionCategory.SUPPLIERS),
]


# -- VENDAS --

SALES_PERMISSIONS = [
    ("sales.view", "Visualizar vendas", PermissionCategory.SALES),
    ("sales.create", "Criar vendas", PermissionCategory.SALES),
    ("sales.edit", "Editar vendas", PermissionCategory.SALES),
    ("sales.cancel", "Cancelar vendas", PermissionCategory.SALES),
]


# -- RELATÓRIOS --

REPORT_PERMISSIONS = [
    ("reports.view", "Visualizar relatórios", PermissionCategory.REPORTS),
]


# -- CLIENTES --

CLIENT_PERMISSIONS = [
    ("clients.view", "Visualizar clientes", PermissionCategory.CLIENTS),
    ("clients.create", "Criar clientes", PermissionCategory.CLIENTS),
    ("clients.edit", "Editar clientes", PermissionCategory.CLIENTS),
    ("clients.delete", "Excluir clientes", PermissionCategory.CLIENTS),
]


# -- USUÁRIOS --

USER_PERMISSIONS = [
    ("users.view", "Visualizar usuários", PermissionCategory.USERS),
    ("users.create", "Criar usuários", PermissionCategory.USERS),
    ("users.edit", "Editar usuários", PermissionCategory.USERS),
    ("users.delete", "Excluir usuários", PermissionCategory.USERS),
]


# -- CARGOS --

ROLE_PERMISSIONS = [
    ("roles.view", "Visualizar cargos", PermissionCategory.ROLES),
    ("roles.create", "Criar cargos", PermissionCategory.ROLES),
    ("roles.edit", "Editar cargos", PermissionCategory.ROLES),
    ("roles.delete", "Excluir cargos", PermissionCategory.ROLES),
]


# -- SISTEMA --

SYSTEM_PERMISSIONS = [
    ("permissions.manage", "Gerenciar permissões", PermissionCategory.SYSTEM),
]


PERMISSION_DEFINITIONS = (
    PRODUCT_PERMISSIONS
    + ENTRY_PERMISSIONS
    + SUPPLIER_PERMISSIONS
    + SALES_PERMISSIONS
    + REPORT_PERMISSIONS
    + CLIENT_PERMISSIONS
    + USER_PERMISSIONS
    + ROLE_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
