from pharma_erp.models.party import Customer, Supplier
from pharma_erp.models.inventory import ProcessedInventoryItem
from pharma_erp.models.sales import Invoice, ProformaInvoice, Quotation

__all__ = [
    "Customer",
    "Supplier",
    "ProcessedInventoryItem",
    "Invoice",
    "Quotation",
    "ProformaInvoice",
]
