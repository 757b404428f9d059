# Overview: Permission definitions and the default role -> permission map.
# Each permission is defined as: (code, name, description, category)

from .models.auth import ROLE_SHOP_OWNER, ROLE_SHOP_WORKER, ROLE_SUPER_ADMIN


class PermissionCategory:
    POS = "POS"
    CATALOG = "CATALOG"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    PAYMENTS = "PAYMENTS"
    CUSTOMERS = "CUSTOMERS"
    LOANS = "LOANS"
    MOBILE_SERVICES = "MOBILE_SERVICES"
    PURCHASING = "PURCHASING"
    SYSTEM = "SYSTEM"


PERMISSION_DEFINITIONS = [
    ("USE_POS", "Use POS", "Manage own cart and check out sales", PermissionCategory.POS),
    ("VIEW_PRODUCTS", "View Products", "View the shop catalog", PermissionCategory.CATALOG),
    ("MANAGE_PRODUCTS", "Manage Products", "Create and edit products and prices", PermissionCategory.CATALOG),
    ("VIEW_INVENTORY", "View Inventory", "View stock levels and units", PermissionCategory.INVENTORY),
    ("RECEIVE_INVENTORY", "Receive Inventory", "Add stock units and change unit status", PermissionCategory.INVENTORY),
    ("VIEW_SALES", "View Sales", "View sales and receipts", PermissionCategory.SALES),
    ("EDIT_SALE", "Edit Sale", "Change sale status and notes", PermissionCategory.SALES),
    ("DELETE_SALE", "Delete Sale", "Delete a sale and restore its stock", PermissionCategory.SALES),
    ("RECORD_PAYMENT", "Record Payment", "Add payments against sales", PermissionCategory.PAYMENTS),
    ("REFUND_PAYMENT", "Refund Payment", "Mark payments as refunded", PermissionCategory.PAYMENTS),
    ("RECONCILE_PAYMENTS", "Reconcile Payments", "Run daily payment reconciliation", PermissionCategory.PAYMENTS),
    ("VIEW_CUSTOMERS", "View Customers", "View customer records", PermissionCategory.CUSTOMERS),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create and edit customers", PermissionCategory.CUSTOMERS),
    ("VIEW_LOANS", "View Loans", "View installment plans", PermissionCategory.LOANS),
    ("MANAGE_LOANS", "Manage Loans", "Create installment plans", PermissionCategory.LOANS),
    ("RECORD_INSTALLMENT", "Record Installment", "Record installment payments", PermissionCategory.LOANS),
    ("USE_MOBILE_SERVICES", "Use Mobile Services", "Record and edit wallet, load and bill payment transactions", PermissionCategory.MOBILE_SERVICES),
    ("DELETE_MOBILE_SERVICE", "Delete Mobile Service", "Delete mobile service transactions", PermissionCategory.MOBILE_SERVICES),
    ("MANAGE_SUPPLIERS", "Manage Suppliers", "Create and edit suppliers", PermissionCategory.PURCHASING),
    ("MANAGE_PURCHASES", "Manage Purchases", "Create, receive and pay purchases", PermissionCategory.PURCHASING),
    ("VIEW_AUDIT_LOG", "View Audit Log", "Read the audit trail", PermissionCategory.SYSTEM),
]

ALL_PERMISSION_CODES = frozenset(code for code, _, _, _ in PERMISSION_DEFINITIONS)

WORKER_PERMISSIONS = frozenset({
    "USE_POS",
    "VIEW_PRODUCTS",
    "VIEW_INVENTORY",
    "VIEW_SALES",
    "RECORD_PAYMENT",
    "VIEW_CUSTOMERS",
    "MANAGE_CUSTOMERS",
    "VIEW_LOANS",
    "RECORD_INSTALLMENT",
    "USE_MOBILE_SERVICES",
})

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_SUPER_ADMIN: ALL_PERMISSION_CODES,
    ROLE_SHOP_OWNER: ALL_PERMISSION_CODES,
    ROLE_SHOP_WORKER: WORKER_PERMISSIONS,
}


def get_role_permissions(role: str) -> frozenset:
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def role_has_permission(role: str, permission_code: str) -> bool:
    if permission_code not in ALL_PERMISSION_CODES:
        raise ValueError(f"Unknown permission code: {permission_code}")
    return permission_code in get_role_permissions(role)
