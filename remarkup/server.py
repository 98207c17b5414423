"""
FastAPI server for the ReMarkup attribute restoration service.

This module provides a REST API server that strips attributes from HTML
fragments and restores them onto edited fragments using the ReMarkup
engine.
"""

import argparse
import logging
import os
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from remarkup.api import ReMarkup
from remarkup.exceptions import (ReMarkupCancelledError, ReMarkupParseError,
                                 ReMarkupTypeError)

# -------------- Logging Configuration --------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
)
logger = logging.getLogger('remarkup_server')

DEFAULT_PORT = 7987


def build_config(
    nonexistent_child_distance: Optional[float] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Build the ReMarkup configuration for the server.

    Environment variables take precedence over the given arguments.

    Args:
        nonexistent_child_distance: Penalty per missing child element
        timeout: Time limit in seconds for one reconciliation

    Returns:
        Configuration dictionary for ReMarkup
    """
    config: Dict[str, Any] = {}
    distance = os.getenv('REMARKUP_NONEXISTENT_CHILD_DISTANCE')
    if distance is not None:
        nonexistent_child_distance = float(distance)
    if nonexistent_child_distance is not None:
        config['nonexistent_child_distance'] = nonexistent_child_distance

    env_timeout = os.getenv('REMARKUP_TIMEOUT')
    if env_timeout is not None:
        timeout = float(env_timeout)
    if timeout is not None:
        config['timeout'] = timeout
    return config


class UnMarkupReq(BaseModel):
    """Request model for the attribute stripping endpoint."""

    html: str = Field(..., description='HTML fragment to strip attributes from')


class ReMarkupReq(BaseModel):
    """Request model for the attribute restoration endpoint."""

    original: str = Field(..., description='Original HTML fragment, including all attributes')
    modified: str = Field(..., description='Edited HTML fragment to restore attributes onto')


class HtmlResp(BaseModel):
    """Response model carrying an HTML fragment."""

    html: str = Field(..., description='Resulting HTML fragment')


def create_app(remarkup: ReMarkup) -> FastAPI:
    """
    Create the FastAPI application around a ReMarkup instance.

    The endpoints are plain functions, so FastAPI runs them in its thread
    pool; every request works on its own parsed trees.

    Args:
        remarkup: Configured ReMarkup engine shared by all requests

    Returns:
        FastAPI application
    """
    app = FastAPI(title='ReMarkup', version='1.0.0')
    app.state.remarkup = remarkup

    def run(operation, *args) -> Dict[str, Any]:
        try:
            return {'html': operation(*args)}
        except (ReMarkupParseError, ReMarkupTypeError) as e:
            logger.warning(f'rejected input: {e}')
            raise HTTPException(status_code=400, detail=str(e))
        except ReMarkupCancelledError as e:
            logger.warning(f'remarkup timed out: {e}')
            raise HTTPException(status_code=504, detail=str(e))
        except Exception as e:
            logger.exception('remarkup error')
            raise HTTPException(status_code=500, detail=str(e))

    @app.post('/unmarkup', response_model=HtmlResp)
    def unmarkup(req: UnMarkupReq) -> Dict[str, Any]:
        """Strip all non-preserved attributes from an HTML fragment."""
        return run(app.state.remarkup.un_markup, req.html)

    @app.post('/remarkup', response_model=HtmlResp)
    def remarkup_endpoint(req: ReMarkupReq) -> Dict[str, Any]:
        """Restore the attributes of the original fragment onto the modified one."""
        return run(app.state.remarkup.re_markup, req.original, req.modified)

    @app.get('/health')
    def health() -> Dict[str, str]:
        """
        Health check endpoint.

        Returns:
            Dictionary with server status
        """
        return {'status': 'ok'}

    return app


def main() -> None:
    # -------------- Command Line Arguments --------------
    parser = argparse.ArgumentParser(description='ReMarkup attribute restoration server')
    parser.add_argument(
        '--port',
        type=int,
        default=DEFAULT_PORT,
        help='Port number to run the server on (can also be set via REMARKUP_PORT env var)'
    )
    parser.add_argument(
        '--nonexistent_child_distance',
        type=float,
        default=None,
        help='Penalty per missing child element (can also be set via '
             'REMARKUP_NONEXISTENT_CHILD_DISTANCE env var)'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Time limit in seconds per reconciliation (can also be set via REMARKUP_TIMEOUT env var)'
    )
    args = parser.parse_args()

    port = int(os.getenv('REMARKUP_PORT', str(args.port)))
    config = build_config(args.nonexistent_child_distance, args.timeout)
    app = create_app(ReMarkup(config=config))

    # Single worker process; requests are served from FastAPI's thread pool
    uvicorn.run(app, host='0.0.0.0', port=port, workers=1)


if __name__ == '__main__':
    main()
