# aiready/services/document_generator.py
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from aiready.core.errors import ValidationError
from aiready.models.ai_system import AISystem
from aiready.models.document import Document
from aiready.models.user import User
from aiready.services.activity import record_activity
from aiready.services.ai_client import ProviderChain
from aiready.services.baseline_analysis import system_to_dict

log = logging.getLogger(__name__)


class DocumentType(str, enum.Enum):
    TECHNICAL_DOCUMENTATION = "technical_documentation"
    RISK_ASSESSMENT = "risk_assessment"
    CONFORMITY_DECLARATION = "conformity_declaration"
    HUMAN_OVERSIGHT_PROTOCOL = "human_oversight_protocol"
    DATA_GOVERNANCE_POLICY = "data_governance_policy"
    INCIDENT_RESPONSE_PLAN = "incident_response_plan"


@dataclass(frozen=True)
class DocumentSpec:
    title: str
    basis: str
    sections: Tuple[str, ...]
    closing: str = "Format the document with proper headings, subheadings, and professional structure."


DOCUMENT_SPECS: Dict[DocumentType, DocumentSpec] = {
    DocumentType.TECHNICAL_DOCUMENTATION: DocumentSpec(
        "Technical Documentation",
        "in accordance with EU AI Act Article 11 requirements",
        (
            "General Description",
            "System Architecture",
            "Development Process",
            "Training Methodology",
            "Testing & Validation Procedures",
            "Risk Management Measures",
            "Change Management Process",
        ),
    ),
    DocumentType.RISK_ASSESSMENT: DocumentSpec(
        "Risk Assessment Report",
        "in accordance with EU AI Act Article 9 requirements",
        (
            "Risk Assessment Methodology",
            "Identified Risks",
            "Potential Harm Analysis",
            "Mitigation Measures",
            "Residual Risks",
            "Monitoring & Review Procedures",
        ),
    ),
    DocumentType.CONFORMITY_DECLARATION: DocumentSpec(
        "EU Declaration of Conformity",
        "for a high-risk AI system under the EU AI Act",
        (
            "System Identifier and General Information",
            "Statement of Conformity",
            "Applicable Requirements",
            "Technical Standards Applied",
            "Conformity Assessment Procedure",
            "Signature of Authorised Representative",
        ),
        "Format the document as a formal declaration with appropriate legal language.",
    ),
    DocumentType.HUMAN_OVERSIGHT_PROTOCOL: DocumentSpec(
        "Human Oversight Protocol",
        "in accordance with EU AI Act Article 14 requirements",
        (
            "Oversight Objectives",
            "Designated Roles & Responsibilities",
            "Oversight Mechanisms",
            "Intervention Procedures",
            "Training Requirements",
            "Documentation & Reporting",
        ),
    ),
    DocumentType.DATA_GOVERNANCE_POLICY: DocumentSpec(
        "Data Governance Policy",
        "in accordance with EU AI Act Article 10 requirements",
        (
            "Data Quality Assurance",
            "Data Protection Measures",
            "Data Processing Procedures",
            "Training Data Management",
            "Bias Monitoring & Mitigation",
            "Data Access Controls",
        ),
    ),
    DocumentType.INCIDENT_RESPONSE_PLAN: DocumentSpec(
        "Incident Response Plan",
        "to manage serious incidents as required by the EU AI Act",
        (
            "Incident Classification",
            "Notification Procedures",
            "Response Team Structure",
            "Investigation Process",
            "Containment & Remediation Steps",
            "Reporting Requirements",
            "Post-Incident Analysis",
        ),
    ),
}


def parse_document_type(value: str) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown document type: {value}",
            details={"allowed": [t.value for t in DocumentType]},
        ) from None


def _fmt_display(value: Any) -> str:
    if value in (None, ""):
        return "N/A"
    if isinstance(value, datetime):
        return value.strftime("%d.%m.%Y")
    if isinstance(value, date):
        return value.strftime("%d.%m.%Y")
    return str(value)


def _system_info(s: Mapping[str, Any]) -> str:
    return "\n".join(
        f"{label}: {_fmt_display(s.get(key))}"
        for label, key in (
            ("System Name", "name"),
            ("Description", "description"),
            ("Purpose", "purpose"),
            ("Department", "department"),
            ("Risk Level", "risk_level"),
            ("Vendor", "vendor"),
            ("Version", "version"),
        )
    )


def build_document_prompt(
    doc_type: DocumentType,
    system: Any,
    company_name: str,
    additional_details: Optional[Mapping[str, Any]] = None,
) -> str:
    spec = DOCUMENT_SPECS[doc_type]
    s = system_to_dict(system)
    sections = "\n".join(f"{i}. {name}" for i, name in enumerate(spec.sections, 1))
    extra = ""
    if additional_details:
        extra = "\nAdditional details:\n" + "\n".join(f"- {k}: {v}" for k, v in additional_details.items())
    return (
        f"As an EU AI Act compliance expert, generate a {spec.title} for the following AI system "
        f"{spec.basis}.\n\n"
        f"Company: {company_name}\n"
        f"{_system_info(s)}\n"
        f"{extra}\n"
        f"Please include the following sections:\n{sections}\n\n"
        f"{spec.closing} Use Markdown."
    )


def render_template(
    doc_type: DocumentType,
    system: Any,
    company_name: str,
    additional_details: Optional[Mapping[str, Any]] = None,
) -> str:
    """Markdown skeleton with the system facts filled in and placeholders for the rest."""
    spec = DOCUMENT_SPECS[doc_type]
    s = system_to_dict(system)
    today = datetime.now(timezone.utc).strftime("%d.%m.%Y")

    lines = [
        f"# {spec.title}: {s.get('name') or 'AI system'}",
        "",
        f"**Company:** {company_name}  ",
        f"**System ID:** {_fmt_display(s.get('system_id'))}  ",
        f"**Date:** {today}",
        "",
        "## System Information",
        "",
        _system_info(s),
        "",
    ]
    for i, section in enumerate(spec.sections, 1):
        lines.extend([f"## {i}. {section}", "", f"[To be completed: {section.lower()}]", ""])
    if additional_details:
        lines.extend(["## Additional Details", ""])
        lines.extend(f"- **{k}:** {v}" for k, v in additional_details.items())
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def _parse_markdown(text: str) -> str:
    body = (text or "").strip()
    if len(body) < 40:
        raise ValueError("document body too short")
    return body + "\n"


def generate_document(
    db: Session,
    system: AISystem,
    doc_type: DocumentType,
    *,
    company_name: str,
    user: Optional[User] = None,
    additional_details: Optional[Mapping[str, Any]] = None,
    chain: Optional[ProviderChain] = None,
) -> Document:
    """Generate the document through the provider chain and store it as a draft."""
    chain = chain or ProviderChain()
    spec = DOCUMENT_SPECS[doc_type]

    res = chain.run(
        build_document_prompt(doc_type, system, company_name, additional_details),
        parse=_parse_markdown,
        fallback=lambda hits: render_template(doc_type, system, company_name, additional_details),
        temperature=0.3,
        max_tokens=4000,
    )

    doc = Document(
        title=f"{spec.title} - {system.name}",
        type=doc_type.value,
        ai_system_id=system.id,
        content=res.data,
        version="1.0",
        status="draft",
        source=res.source,
        created_by=user.id if user else None,
    )
    db.add(doc)
    db.flush()
    record_activity(
        db,
        type="document_generated",
        description=f"{spec.title} generated for {system.name}",
        user_id=user.id if user else None,
        ai_system_id=system.id,
        meta={"document_id": doc.id, "type": doc_type.value, "source": res.source},
        commit=False,
    )
    db.commit()
    db.refresh(doc)
    log.info("document %s generated for system %s via %s", doc_type.value, system.id, res.source)
    return doc
