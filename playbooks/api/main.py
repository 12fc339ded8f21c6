"""Playbooks API - playbook resolution and prompt composition service.

This API serves playbook definitions and builds agent prompts from them:
- Playbook definitions (listing, lookup)
- Resolution (best playbook for a task, ranked layers)
- Prompt building (layered prompt with optional knowledge context)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from playbooks import __version__
from playbooks.api.routes import playbooks, prompts
from playbooks.composer.registry import get_template_registry
from playbooks.documents.registry import get_playbook_registry
from playbooks.knowledge.capability import close_knowledge_capability, get_knowledge_capability

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Pre-load registries
    logger.info("Loading playbook definitions...")
    playbook_registry = get_playbook_registry()
    logger.info(f"Loaded {playbook_registry.count()} playbooks from {playbook_registry.definitions_dir}")

    logger.info("Loading layer templates...")
    template_registry = get_template_registry()
    logger.info(f"Loaded {len(template_registry.list_templates())} layer templates")

    if get_knowledge_capability() is None:
        logger.info("No knowledge service configured, using the command-line fallback")

    logger.info("Playbooks API ready")
    yield
    # Shutdown
    logger.info("Shutting down Playbooks API")
    close_knowledge_capability()


# Create FastAPI app
app = FastAPI(
    title="Playbooks API",
    description="""
## Playbook Resolution Service

Resolves instructional playbooks for AI coding agents and composes them
into layered prompts.

### Key Endpoints

- `GET /v1/playbooks` - List all playbooks
- `GET /v1/playbooks/{id}` - Get full playbook definition
- `POST /v1/playbooks/resolve` - Best playbook for a task
- `POST /v1/playbooks/resolve/layers` - All matching playbooks, ranked
- `POST /v1/prompts/build` - Build a layered prompt for a task
""",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with /v1 prefix
app.include_router(playbooks.router, prefix="/v1")
app.include_router(prompts.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Playbooks API",
        "version": __version__,
        "description": "Playbook resolution and prompt composition",
        "docs": "/docs",
        "endpoints": {
            "playbooks": "/v1/playbooks",
            "resolve": "/v1/playbooks/resolve",
            "prompts": "/v1/prompts/build",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    registry = get_playbook_registry()
    return {
        "status": "healthy",
        "playbooks_loaded": registry.count(),
        "templates_loaded": len(get_template_registry().list_templates()),
    }
