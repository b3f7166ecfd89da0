"""Server blueprints — the panel egg, image and startup per package family.

Resource limits come from the catalogue package itself; a blueprint only
says *what* to run on the panel.
"""

from dataclasses import dataclass, field

from catalogue.port import PackageFamily


@dataclass(frozen=True)
class ServerBlueprint:
    egg: int
    docker_image: str
    startup: str
    environment: dict = field(default_factory=dict)
    node_id: int = 1


_NODEJS_STARTUP = (
    'if [[ -d .git ]] && [[ "{{AUTO_UPDATE}}" == "1" ]]; then git pull; fi; '
    "/usr/local/bin/npm install && "
    '/usr/local/bin/node --max-old-space-size=${SERVER_MEMORY} "/home/container/${MAIN_FILE}"'
)
_PYTHON_STARTUP = (
    'if [[ -d .git ]] && [[ "{{AUTO_UPDATE}}" == "1" ]]; then git pull; fi; '
    "if [[ -f /home/container/${REQUIREMENTS_FILE} ]]; then "
    "pip install -U --prefix .local -r ${REQUIREMENTS_FILE}; fi; "
    "/usr/local/bin/python /home/container/{{PY_FILE}}"
)


def default_blueprints(node_id: int = 1) -> dict[PackageFamily, ServerBlueprint]:
    return {
        PackageFamily.NODEJS: ServerBlueprint(
            egg=15,
            docker_image="ghcr.io/parkervcp/yolks:nodejs_22",
            startup=_NODEJS_STARTUP,
            environment={"MAIN_FILE": "index.js", "AUTO_UPDATE": "0"},
            node_id=node_id,
        ),
        PackageFamily.VPS: ServerBlueprint(
            egg=16,
            docker_image="quay.io/ydrag0n/pterodactyl-vps-egg",
            startup="bash /run.sh",
            environment={"VPS_USER": "root", "VPS_SSH_PORT": "22"},
            node_id=node_id,
        ),
        PackageFamily.PYTHON: ServerBlueprint(
            egg=17,
            docker_image="ghcr.io/parkervcp/yolks:python_3.12",
            startup=_PYTHON_STARTUP,
            environment={"PY_FILE": "main.py", "AUTO_UPDATE": "0", "REQUIREMENTS_FILE": "requirements.txt"},
            node_id=node_id,
        ),
    }
