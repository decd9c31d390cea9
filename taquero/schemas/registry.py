"""Registered compliance modules and their sheet layouts."""

from typing import Dict, List

from taquero.core.exceptions import UnknownModuleError
from taquero.schemas.sheets import (
    ColumnKind,
    DeleteMode,
    SheetSchema,
    SortKind,
    col,
)

LIST = ColumnKind.LIST
NUMBER = ColumnKind.NUMBER
BOOL = ColumnKind.BOOL


ALLERGENS = SheetSchema(
    key="allergens",
    sheet_name="Allergen_Records",
    title="Allergens",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Record ID", "id"),
        col("Dish Name", "dishName"),
        col("Ingredients", "ingredients"),
        col("Allergens", "allergens", LIST),
        col("Created By", "createdBy"),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
    ),
    required=("id", "dishName"),
    sort_field="createdAt",
    delete_mode=DeleteMode.HARD,
)

B2B_SALES = SheetSchema(
    key="b2b-sales",
    sheet_name="B2B_Sales",
    title="B2B Sales",
    columns=(
        col("ID", "id"),
        col("Business Name", "businessName"),
        col("Contact Details", "contactDetails"),
        col("Product Supplied", "productSupplied"),
        col("Quantity", "quantity", NUMBER),
        col("Unit", "unit"),
        col("Date Supplied", "dateSupplied"),
        col("Task Done By", "taskDoneBy"),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
        col("Unix Timestamp", "unixTimestamp", NUMBER),
    ),
    required=("id", "businessName", "contactDetails", "productSupplied", "quantity", "unit", "dateSupplied"),
    sort_field="dateSupplied",
)

CLEANING_CLOSING = SheetSchema(
    key="cleaning-closing",
    sheet_name="Cleaning_Closing",
    title="Cleaning & Closing",
    columns=(
        col("ID", "id"),
        col("Cleaning Task", "cleaningTask"),
        col("Date Completed", "dateCompleted"),
        col("Cleaning Method", "cleaningMethod"),
        col("Completed By", "completedBy"),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
        col("Unix Timestamp", "unixTimestamp", NUMBER),
    ),
    required=("id", "cleaningTask", "dateCompleted", "cleaningMethod", "completedBy"),
    sort_field="dateCompleted",
)

COMPLAINTS = SheetSchema(
    key="complaints",
    sheet_name="Customer_Complaints",
    title="Customer Complaints",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Complaint ID", "id"),
        col("Customer Name", "customerName"),
        col("Customer Contact", "customerContact"),
        col("Purchase Date", "purchaseDate"),
        col("Purchase Time", "purchaseTime"),
        col("Food Item", "foodItem"),
        col("Batch/Lot Number", "batchLotNumber", optional=True),
        col("Complaint Description", "complaintDescription"),
        col("Complaint Type", "complaintType", optional=True),
        col("Cause Investigation", "causeInvestigation"),
        col("Action Taken Immediate", "actionTakenImmediate"),
        col("Action Taken Preventive", "actionTakenPreventive"),
        col("Resolved By", "resolvedBy"),
        col("Resolution Date", "resolutionDate"),
        col("Complaint Status", "complaintStatus"),
        col("Linked Incident ID", "linkedIncidentId", optional=True),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
    ),
    required=(
        "id", "customerName", "customerContact", "purchaseDate", "purchaseTime",
        "foodItem", "complaintDescription", "causeInvestigation", "actionTakenImmediate",
        "actionTakenPreventive", "resolvedBy", "resolutionDate", "complaintStatus",
    ),
    sort_field="purchaseDate",
)

COOLING_BATCH_CHECKS = SheetSchema(
    key="cooling-batch-checks",
    sheet_name="Cooling_Batch_Checks",
    title="Cooling Batch Checks",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Record ID", "id"),
        col("Food Type", "foodType"),
        col("Date Cooked", "dateCooked"),
        col("Start Time", "startTime"),
        col("Start Temp (°C)", "startTemp", NUMBER),
        col("2nd Time Check", "secondTimeCheck", optional=True),
        col("2nd Temp Check (°C)", "secondTempCheck", NUMBER, optional=True),
        col("3rd Time Check", "thirdTimeCheck", optional=True),
        col("3rd Temp Check (°C)", "thirdTempCheck", NUMBER, optional=True),
        col("Cooling Method", "coolingMethod"),
        col("Completed By", "completedBy"),
    ),
    required=("id", "foodType", "dateCooked", "startTime", "startTemp"),
    sort_field="unixTimestamp",
    sort_kind=SortKind.NUMBER,
    delete_mode=DeleteMode.HARD,
)

COOKING_PROTEINS = SheetSchema(
    key="cooking-proteins",
    sheet_name="Cooking_Proteins_Batch",
    title="Cooking Proteins Batch",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Staff Name", "staffName"),
        col("Protein Cooked", "proteinCooked"),
        col("Type of Check", "typeOfCheck"),
        col("Temperature", "temperature", NUMBER),
        col("Duration in Temperature", "durationInTemperature", optional=True),
        col("Cooking Protein Batch ID", "id"),
    ),
    required=("id", "staffName", "proteinCooked", "typeOfCheck", "temperature"),
    sort_field="unixTimestamp",
    sort_kind=SortKind.NUMBER,
    delete_mode=DeleteMode.HARD,
)

EQUIPMENT_MAINTENANCE = SheetSchema(
    key="equipment-maintenance",
    sheet_name="Equipment_Maintenance",
    title="Equipment Maintenance",
    columns=(
        col("ID", "id"),
        col("Equipment Name", "equipmentName"),
        col("Date Completed", "dateCompleted"),
        col("Performed By", "performedBy"),
        col("Maintenance Description", "maintenanceDescription"),
        col("Checking Frequency", "checkingFrequency", optional=True),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
        col("Unix Timestamp", "unixTimestamp", NUMBER),
    ),
    required=("id", "equipmentName", "dateCompleted", "performedBy", "maintenanceDescription"),
    sort_field="dateCompleted",
)

FRIDGE_TEMPS = SheetSchema(
    key="fridge-temps",
    sheet_name="Temperature_Logs",
    title="Fridge & Freezer Temperatures",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Record ID", "id"),
        col("Date", "date"),
        col("Time", "time"),
        col("User", "user"),
        col("Chiller 1", "chiller1", NUMBER, optional=True),
        col("Chiller 2", "chiller2", NUMBER, optional=True),
        col("Chiller 3", "chiller3", NUMBER, optional=True),
        col("Chiller 4", "chiller4", NUMBER, optional=True),
        col("Chiller 5", "chiller5", NUMBER, optional=True),
        col("Chiller 6", "chiller6", NUMBER, optional=True),
        col("Freezer 1", "freezer1", NUMBER, optional=True),
        col("Status", "status"),
    ),
    required=("id", "date", "time", "user"),
    sort_field="unixTimestamp",
    sort_kind=SortKind.NUMBER,
)

INCIDENTS = SheetSchema(
    key="incidents",
    sheet_name="Incidents",
    title="When Something Goes Wrong",
    columns=(
        col("ID", "id"),
        col("Incident Date", "incidentDate"),
        col("Person Responsible", "personResponsible"),
        col("Staff Involved", "staffInvolved"),
        col("Category", "category"),
        col("What Went Wrong", "whatWentWrong"),
        col("What Did to Fix", "whatDidToFix"),
        col("Preventive Action", "preventiveAction"),
        col("Severity", "severity"),
        col("Incident Status", "incidentStatus"),
        col("Follow-up Date", "followUpDate", optional=True),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
        col("Unix Timestamp", "unixTimestamp", NUMBER),
    ),
    required=("id", "incidentDate", "personResponsible", "whatWentWrong", "whatDidToFix", "preventiveAction"),
    sort_field="incidentDate",
)

MY_SUPPLIERS = SheetSchema(
    key="my-suppliers",
    sheet_name="Supplier_Records",
    title="My Suppliers",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Supplier ID", "id"),
        col("Business Name", "businessName"),
        col("Site Registration Number", "siteRegistrationNumber", optional=True),
        col("Contact Person", "contactPerson"),
        col("Phone", "phone", optional=True),
        col("Email", "email", optional=True),
        col("Address", "address", optional=True),
        col("Order Days", "orderDays", LIST),
        col("Delivery Days", "deliveryDays", LIST),
        col("Goods Supplied", "goodsSupplied"),
        col("Comments", "comments", optional=True),
        col("Created By", "createdBy"),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
    ),
    required=("id", "businessName", "contactPerson", "goodsSupplied"),
    sort_field="createdAt",
    bucket="taquero-suppliers",
)

STAFF_SICKNESS = SheetSchema(
    key="staff-sickness",
    sheet_name="Staff_Sickness",
    title="Staff Sickness",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Record ID", "id"),
        col("Staff Name", "staffName"),
        col("Symptoms", "symptoms", optional=True),
        col("Date Sick", "dateSick"),
        col("Date Returned", "dateReturned", optional=True),
        col("Action Taken", "actionTaken", optional=True),
        col("Checked By", "checkedBy"),
        col("Status", "status"),  # sick, returned
    ),
    required=("id", "staffName", "dateSick", "checkedBy"),
    sort_field="unixTimestamp",
    sort_kind=SortKind.NUMBER,
    delete_mode=DeleteMode.HARD,
)

SUPPLIER_DELIVERIES = SheetSchema(
    key="supplier-deliveries",
    sheet_name="Delivery_Records",
    title="Supplier Deliveries",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Delivery ID", "id"),
        col("Delivery Date", "deliveryDate"),
        col("Supplier Name", "supplierName"),
        col("Supplier Contact", "supplierContact", optional=True),
        col("Batch/Lot ID", "batchLotId", optional=True),
        col("Type of Food", "typeOfFood"),
        col("Quantity", "quantity", NUMBER),
        col("Unit", "unit"),
        col("Requires Temp Check", "requiresTempCheck", BOOL),
        col("Temperature", "temperature", NUMBER, optional=True),
        col("Task Done By", "taskDoneBy"),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
    ),
    required=("id", "deliveryDate", "supplierName", "typeOfFood", "quantity", "unit", "taskDoneBy"),
    sort_field="deliveryDate",
    bucket="taquero-deliveries",
)

TRACEABILITY = SheetSchema(
    key="traceability",
    sheet_name="Traceability",
    title="Trace Your Food",
    columns=(
        col("ID", "id"),
        col("Trace Date", "traceDate"),
        col("Product Type", "productType"),
        col("Brand", "brand"),
        col("Batch/Lot Information", "batchLotInfo"),
        col("Supplier Name", "supplierName"),
        col("Supplier Contact", "supplierContact"),
        col("Manufacturer Name", "manufacturerName"),
        col("Manufacturer Contact", "manufacturerContact"),
        col("Date Received", "dateReceived", optional=True),
        col("Performed By", "performedBy"),
        col("Other Information", "otherInfo", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
        col("Unix Timestamp", "unixTimestamp", NUMBER),
    ),
    required=(
        "id", "traceDate", "productType", "brand", "batchLotInfo", "supplierName",
        "supplierContact", "manufacturerName", "manufacturerContact", "performedBy",
    ),
    sort_field="traceDate",
)

TRANSPORT_TEMP_CHECKS = SheetSchema(
    key="transport-temp-checks",
    sheet_name="Transport_Temp_Check_Records",
    title="Transport Temperature Checks",
    columns=(
        col("Unix Timestamp", "unixTimestamp", NUMBER),
        col("Transport ID", "id"),
        col("Check Date", "checkDate"),
        col("Type of Food", "typeOfFood"),
        col("Temperature (°C)", "temperature", NUMBER),
        col("Task Done By", "taskDoneBy"),
        col("Notes", "notes", optional=True),
        col("Created At", "createdAt"),
        col("Updated At", "updatedAt", optional=True),
        col("Status", "status"),
    ),
    required=("id", "checkDate", "typeOfFood", "temperature", "taskDoneBy"),
    sort_field="checkDate",
)


MODULES: Dict[str, SheetSchema] = {
    schema.key: schema
    for schema in (
        ALLERGENS,
        B2B_SALES,
        CLEANING_CLOSING,
        COMPLAINTS,
        COOLING_BATCH_CHECKS,
        COOKING_PROTEINS,
        EQUIPMENT_MAINTENANCE,
        FRIDGE_TEMPS,
        INCIDENTS,
        MY_SUPPLIERS,
        STAFF_SICKNESS,
        SUPPLIER_DELIVERIES,
        TRACEABILITY,
        TRANSPORT_TEMP_CHECKS,
    )
}


def get_module(key: str) -> SheetSchema:
    """Look up a registered module, raising UnknownModuleError for anything else."""
    try:
        return MODULES[key]
    except KeyError:
        raise UnknownModuleError(key) from None


def list_modules() -> List[Dict[str, str]]:
    return [
        {
            "key": schema.key,
            "title": schema.title,
            "sheet": schema.sheet_name,
            "delete_mode": schema.delete_mode.value,
        }
        for schema in MODULES.values()
    ]
