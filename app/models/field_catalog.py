"""Automotive repair field catalogue used to build extraction prompts.

The comprehensive catalogue is grouped into six categories. Every
non-custom extraction type asks the model for all of these fields; the
extraction type only changes what the model is told to focus on.
"""

from app.models.schemas import ExtractionType

FIELD_CATALOG: dict[str, dict[str, str]] = {
    "customer_information": {
        "customer_name": "Customer's name if mentioned",
        "contact_info": "Phone, email, or address if mentioned",
        "service_requests": "Services the customer asked for",
    },
    "vehicle_information": {
        "vin": "Vehicle identification number",
        "vehicle_type": "Car, truck, SUV, van, motorcycle, etc.",
        "year": "Model year",
        "make": "Manufacturer or brand",
        "model": "Model name",
        "body_style": "Sedan, coupe, hatchback, crew cab, etc.",
        "engine": "Engine size or type",
        "interior_color": "Interior color",
        "exterior_color": "Exterior color",
        "paint_code": "Manufacturer paint code",
        "license_plate": "License plate number",
        "license_state": "State or province of registration",
        "job_number": "Shop job or repair order number",
        "production_date": "Vehicle production date",
        "mileage_in": "Odometer reading at drop-off",
        "mileage_out": "Odometer reading at pick-up",
        "fuel_level": "Fuel level at drop-off",
    },
    "damage_assessment": {
        "repairable_condition": "Whether the vehicle is repairable or a total loss",
        "primary_impact": "Primary point of impact",
        "secondary_impact": "Secondary point of impact",
        "drivable_status": "Whether the vehicle is drivable",
        "impact_notes": "Details about the impact damage",
        "prior_damage_notes": "Pre-existing or unrelated damage",
        "problem_description": "What the customer reported as the issue",
        "diagnosis": "What the technician found during inspection",
    },
    "repair_work": {
        "repairs_performed": "Specific repair work done",
        "labor_type": "Body, mechanical, paint, frame, etc.",
        "tasks_performed": "List of specific tasks done",
        "time_per_task": "Time spent on each task",
        "total_hours": "Total labor time",
        "difficulty_level": "How complex the work was (easy/medium/hard)",
        "technician_notes": "Notes about the work performed",
    },
    "parts_operations": {
        "parts_used": "Parts replaced or installed",
        "part_numbers": "Specific part numbers mentioned",
        "part_descriptions": "Description of parts used",
        "quantities": "How many of each part",
        "suppliers": "Where parts were sourced from",
        "costs": "Part costs if mentioned",
        "installation_notes": "Special installation requirements",
        "paint_needed": "Whether and where paint or refinish is needed",
        "operation_type": "Repair, replace, refinish, R&I, etc.",
        "operation_description": "Description of each estimate operation",
        "estimated_total": "Estimated total cost",
    },
    "recommendations": {
        "recommendations": "Future maintenance or repair suggestions",
    },
}

EXTRACTION_TYPE_DESCRIPTIONS: dict[ExtractionType, str] = {
    ExtractionType.REPAIR_DETAILS: "Extract repair work details, issues, and solutions",
    ExtractionType.PARTS_INVENTORY: "Extract parts information and inventory details",
    ExtractionType.LABOR_HOURS: "Extract labor time and work breakdown",
    ExtractionType.CUSTOMER_INFO: "Extract customer and vehicle information",
    ExtractionType.DAMAGE_ASSESSMENT: "Extract collision damage, impact points, and drivability",
    ExtractionType.CUSTOM: "Define your own extraction schema",
}


def all_fields() -> list[str]:
    """Flat, ordered list of every field in the comprehensive catalogue."""
    return [field for fields in FIELD_CATALOG.values() for field in fields]


def describe_schemas() -> dict:
    """Static description of the field catalogue for the schemas endpoint."""
    categories = {name: list(fields) for name, fields in FIELD_CATALOG.items()}
    schemas = {}
    for extraction_type, description in EXTRACTION_TYPE_DESCRIPTIONS.items():
        if extraction_type == ExtractionType.CUSTOM:
            schemas[extraction_type.value] = {
                "description": description,
                "fields": ["custom_fields_defined_by_user"],
            }
        else:
            schemas[extraction_type.value] = {
                "description": description,
                "categories": categories,
                "fieldCount": len(all_fields()),
            }
    return {
        "schemas": schemas,
        "categories": categories,
        "totalFields": len(all_fields()),
    }
