from typing import Dict, Optional
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import logging
from configurator.config import Config
from configurator.errors import (
    CatalogLoadError, CustomerValidationError, IncompleteConfigurationError,
    RecordNotFoundError
)
from configurator.models.component_models import ComponentCategory
from configurator.models.quote_models import Address, CustomerInfo, QuoteStatus
from configurator.services.configurator_service import ConfiguratorService

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Industrial Configurator API",
    description="Compatibility-checked product configuration, pricing and quoting",
    version="1.0.0"
)

# CORS for the wizard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[ConfiguratorService] = None


def get_service() -> ConfiguratorService:
    """Single service instance, built on first use"""
    global _service
    if _service is None:
        _service = ConfiguratorService()
    return _service


# ================================================================
# Request bodies
# ================================================================
class SessionRequest(BaseModel):
    name: Optional[str] = None


class SelectRequest(BaseModel):
    componentId: str


class BOMRequest(BaseModel):
    quantities: Optional[Dict[str, int]] = None


class AddressPayload(BaseModel):
    street: str
    city: str
    state: str
    zipCode: str
    country: str


class CustomerPayload(BaseModel):
    companyName: str = ""
    contactName: str = ""
    email: str = ""
    phone: Optional[str] = None
    address: Optional[AddressPayload] = None

    def to_customer(self) -> CustomerInfo:
        address = None
        if self.address:
            address = Address(
                street=self.address.street,
                city=self.address.city,
                state=self.address.state,
                zip_code=self.address.zipCode,
                country=self.address.country
            )
        return CustomerInfo(
            company_name=self.companyName,
            contact_name=self.contactName,
            email=self.email,
            phone=self.phone,
            address=address
        )


class QuoteRequest(BaseModel):
    customer: CustomerPayload
    notes: Optional[str] = None


class QuoteStatusRequest(BaseModel):
    status: str


def _parse_category(value: str) -> ComponentCategory:
    try:
        return ComponentCategory(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown category: '{value}'")


def _parse_status(value: str) -> QuoteStatus:
    try:
        return QuoteStatus(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown quote status: '{value}'")


# ================================================================
# Error mapping
# ================================================================
@app.exception_handler(RecordNotFoundError)
def handle_not_found(request, exc: RecordNotFoundError):
    logger.warning(f"API: {exc}")
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(IncompleteConfigurationError)
def handle_incomplete(request, exc: IncompleteConfigurationError):
    logger.warning(f"API: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(CustomerValidationError)
def handle_invalid_customer(request, exc: CustomerValidationError):
    logger.warning(f"API: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})


@app.get("/")
def root():
    return {"status": "running", "service": "Industrial Configurator"}


# ================================================================
# Catalog
# ================================================================
@app.get("/api/catalog/components")
def list_components(category: Optional[str] = None,
                    service: ConfiguratorService = Depends(get_service)):
    """Available components, optionally for one category"""
    if category:
        components = service.get_components(_parse_category(category))
    else:
        components = [c for c in service.catalog.all_components if c.is_available]
    return {"components": [c.to_dict() for c in components], "count": len(components)}


@app.get("/api/catalog/components/{component_id}")
def get_component(component_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.get_component(component_id).to_dict()


@app.get("/api/catalog/stats")
def get_catalog_statistics(service: ConfiguratorService = Depends(get_service)):
    return service.get_statistics()


@app.post("/api/catalog/reload")
def reload_catalog(service: ConfiguratorService = Depends(get_service)):
    try:
        service.reload_catalog()
    except CatalogLoadError as e:
        logger.error(f"API: Catalog reload failed - {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return service.get_statistics()


# ================================================================
# Sessions
# ================================================================
@app.post("/api/sessions")
def create_session(request: SessionRequest, service: ConfiguratorService = Depends(get_service)):
    logger.info("API: Session requested")
    return service.create_session(request.name).to_dict()


@app.get("/api/sessions/{session_id}")
def get_session(session_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.get_session(session_id).to_dict()


@app.delete("/api/sessions/{session_id}")
def close_session(session_id: str, service: ConfiguratorService = Depends(get_service)):
    service.close_session(session_id)
    return {"status": "closed"}


@app.post("/api/sessions/{session_id}/select")
def select_component(session_id: str, request: SelectRequest,
                     service: ConfiguratorService = Depends(get_service)):
    return service.select_component(session_id, request.componentId).to_dict()


@app.delete("/api/sessions/{session_id}/selections/{category}")
def deselect_component(session_id: str, category: str,
                       service: ConfiguratorService = Depends(get_service)):
    session = service.get_session(session_id)
    session.deselect(_parse_category(category))
    return session.to_dict()


@app.post("/api/sessions/{session_id}/advance")
def advance(session_id: str, service: ConfiguratorService = Depends(get_service)):
    session = service.get_session(session_id)
    moved = session.advance()
    return {"moved": moved, "session": session.to_dict()}


@app.post("/api/sessions/{session_id}/retreat")
def retreat(session_id: str, service: ConfiguratorService = Depends(get_service)):
    session = service.get_session(session_id)
    moved = session.retreat()
    return {"moved": moved, "session": session.to_dict()}


@app.post("/api/sessions/{session_id}/reset")
def reset_session(session_id: str, service: ConfiguratorService = Depends(get_service)):
    session = service.get_session(session_id)
    session.reset()
    return session.to_dict()


@app.get("/api/sessions/{session_id}/compatibility")
def explain_compatibility(session_id: str, service: ConfiguratorService = Depends(get_service)):
    """Why each component of the current step is or is not offered"""
    session = service.get_session(session_id)
    category = session.current_step.category
    return {
        "category": category.value,
        "available": [c.id for c in session.available_components],
        "rejected": session.resolver.explain_category(category, session.selected_components)
    }


@app.get("/api/sessions/{session_id}/price")
def get_price(session_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.get_session(session_id).price_calculation.to_dict()


@app.post("/api/sessions/{session_id}/bom")
def generate_bom(session_id: str, request: BOMRequest,
                 service: ConfiguratorService = Depends(get_service)):
    bom = service.get_session(session_id).generate_bom(quantities=request.quantities)
    return bom.to_dict()


@app.post("/api/sessions/{session_id}/save")
def save_session(session_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.save_session(session_id).to_dict()


@app.post("/api/sessions/{session_id}/quote")
def create_quote(session_id: str, request: QuoteRequest,
                 service: ConfiguratorService = Depends(get_service)):
    logger.info(f"API: Quote requested for session {session_id}")
    quote = service.create_quote(session_id, request.customer.to_customer(), notes=request.notes)
    return quote.to_dict()


# ================================================================
# Saved configurations
# ================================================================
@app.get("/api/configurations")
def list_configurations(service: ConfiguratorService = Depends(get_service)):
    configurations = service.repository.list_configurations()
    return {"configurations": [c.to_dict() for c in configurations], "count": len(configurations)}


@app.get("/api/configurations/{configuration_id}")
def get_configuration(configuration_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.repository.require_configuration(configuration_id).to_dict()


@app.post("/api/configurations/{configuration_id}/resume")
def resume_configuration(configuration_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.resume_configuration(configuration_id).to_dict()


@app.delete("/api/configurations/{configuration_id}")
def delete_configuration(configuration_id: str, service: ConfiguratorService = Depends(get_service)):
    if not service.repository.delete_configuration(configuration_id):
        raise HTTPException(status_code=404, detail=f"Configuration not found: '{configuration_id}'")
    return {"status": "deleted"}


# ================================================================
# Quotes
# ================================================================
@app.get("/api/quotes")
def list_quotes(configurationId: Optional[str] = None,
                service: ConfiguratorService = Depends(get_service)):
    quotes = service.repository.list_quotes(configurationId)
    return {"quotes": [q.to_dict() for q in quotes], "count": len(quotes)}


@app.post("/api/quotes/expire")
def expire_quotes(service: ConfiguratorService = Depends(get_service)):
    expired = service.expire_quotes()
    return {"expired": [q.quote_number for q in expired], "count": len(expired)}


@app.get("/api/quotes/{quote_id}")
def get_quote(quote_id: str, service: ConfiguratorService = Depends(get_service)):
    return service.repository.require_quote(quote_id).to_dict()


@app.patch("/api/quotes/{quote_id}/status")
def update_quote_status(quote_id: str, request: QuoteStatusRequest,
                        service: ConfiguratorService = Depends(get_service)):
    return service.update_quote_status(quote_id, _parse_status(request.status)).to_dict()


@app.delete("/api/quotes/{quote_id}")
def delete_quote(quote_id: str, service: ConfiguratorService = Depends(get_service)):
    if not service.repository.delete_quote(quote_id):
        raise HTTPException(status_code=404, detail=f"Quote not found: '{quote_id}'")
    return {"status": "deleted"}


@app.on_event("startup")
def startup():
    """Validate configuration on startup"""
    Config.validate()
    logger.info("API server started")


@app.on_event("shutdown")
def shutdown():
    """Cleanup on shutdown"""
    if _service is not None:
        _service.close()
    logger.info("API server stopped")
