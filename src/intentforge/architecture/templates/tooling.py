"""Build tooling and project metadata templates.

Covers the dependency manifest, compiler and bundler configuration, the HTML
entry page, README, Dockerfile and ignore rules of a generated React app.
"""

from __future__ import annotations

import json

from intentforge.architecture.templates.base import FileTemplate, TemplateContext, static

# Fixed development toolchain for every generated app
DEV_DEPENDENCIES: dict[str, str] = {
    "@types/react": "^18.2.0",
    "@types/react-dom": "^18.2.0",
    "@vitejs/plugin-react": "^4.2.0",
    "autoprefixer": "^10.4.16",
    "postcss": "^8.4.32",
    "tailwindcss": "^3.4.0",
    "typescript": "^5.3.0",
    "vite": "^5.0.0",
    "vitest": "^1.0.0",
}

BACKEND_DEV_DEPENDENCIES: dict[str, str] = {
    "@types/cors": "^2.8.17",
    "@types/express": "^4.17.21",
    "tsx": "^4.7.0",
}


def _dump(document: dict) -> str:
    return json.dumps(document, indent=2) + "\n"


def render_package_json(ctx: TemplateContext) -> str:
    """Dependency manifest from the architecture plus the fixed toolchain."""
    scripts = {
        "dev": "vite",
        "build": "tsc && vite build",
        "preview": "vite preview",
        "test": "vitest run",
    }
    dev_dependencies = dict(DEV_DEPENDENCIES)
    if ctx.has_backend:
        scripts["server"] = "tsx server/index.ts"
        dev_dependencies.update(BACKEND_DEV_DEPENDENCIES)

    return _dump(
        {
            "name": ctx.slug,
            "private": True,
            "version": "0.1.0",
            "description": ctx.variables["PROJECT_DESCRIPTION"],
            "type": "module",
            "scripts": scripts,
            "dependencies": dict(ctx.architecture.dependencies),
            "devDependencies": dict(sorted(dev_dependencies.items())),
        }
    )


def render_tsconfig(ctx: TemplateContext) -> str:
    return _dump(
        {
            "compilerOptions": {
                "target": "ES2020",
                "useDefineForClassFields": True,
                "lib": ["ES2020", "DOM", "DOM.Iterable"],
                "module": "ESNext",
                "skipLibCheck": True,
                "moduleResolution": "bundler",
                "allowImportingTsExtensions": True,
                "resolveJsonModule": True,
                "isolatedModules": True,
                "noEmit": True,
                "jsx": "react-jsx",
                "strict": True,
                "noUnusedLocals": True,
                "noUnusedParameters": True,
                "noFallthroughCasesInSwitch": True,
            },
            "include": ["src"],
            "references": [{"path": "./tsconfig.node.json"}],
        }
    )


def render_tsconfig_node(ctx: TemplateContext) -> str:
    return _dump(
        {
            "compilerOptions": {
                "composite": True,
                "skipLibCheck": True,
                "module": "ESNext",
                "moduleResolution": "bundler",
                "allowSyntheticDefaultImports": True,
            },
            "include": ["vite.config.ts"],
        }
    )


VITE_CONFIG = """import { defineConfig } from 'vite'
import react from '@vitejs/plugin-react'

export default defineConfig({
  plugins: [react()],
  server: {
    port: 3000,
  },
})
"""

TAILWIND_CONFIG = """/** @type {import('tailwindcss').Config} */
export default {
  content: ['./index.html', './src/**/*.{js,ts,jsx,tsx}'],
  darkMode: 'class',
  theme: {
    extend: {},
  },
  plugins: [],
}
"""

POSTCSS_CONFIG = """export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
}
"""

INDEX_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <meta name="description" content="{{PROJECT_DESCRIPTION_HTML}}" />
    <title>{{PROJECT_NAME_HTML}}</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
"""

README = """# {{PROJECT_NAME}}

{{PROJECT_DESCRIPTION}}

## Getting Started

### Prerequisites

- Node.js 20+
- npm

### Installation

```bash
npm install
```

### Development

```bash
npm run dev
```

### Build

```bash
npm run build
```

### Test

```bash
npm test
```

## Deployment

```bash
docker build -t {{PROJECT_SLUG}} .
docker run -p 3000:3000 {{PROJECT_SLUG}}
```
"""

DOCKERFILE = """FROM node:20-alpine AS build

WORKDIR /app

COPY package*.json ./
RUN npm install

COPY . .
RUN npm run build

FROM node:20-alpine

WORKDIR /app

COPY --from=build /app/dist ./dist
RUN npm install -g serve

EXPOSE 3000

CMD ["serve", "-s", "dist", "-l", "3000"]
"""

GITIGNORE = """# Dependencies
node_modules/

# Build output
dist/
build/

# Environment
.env
.env.local
.env.*.local

# Logs
logs/
*.log
npm-debug.log*

# Editor
.vscode/
.idea/
*.swp

# OS
.DS_Store
Thumbs.db

# Coverage
coverage/
"""


def get_tooling_templates() -> list[FileTemplate]:
    """Templates for the manifest, configuration and metadata files."""
    return [
        FileTemplate("package.json", "json", "Dependency manifest and scripts", render_package_json),
        FileTemplate("vite.config.ts", "typescript", "Bundler configuration", static(VITE_CONFIG)),
        FileTemplate("tsconfig.json", "json", "TypeScript compiler configuration", render_tsconfig),
        FileTemplate(
            "tsconfig.node.json", "json", "TypeScript configuration for tooling files",
            render_tsconfig_node,
        ),
        FileTemplate(
            "tailwind.config.js", "javascript", "Utility CSS configuration", static(TAILWIND_CONFIG)
        ),
        FileTemplate(
            "postcss.config.js", "javascript", "CSS post-processing configuration",
            static(POSTCSS_CONFIG),
        ),
        FileTemplate("index.html", "html", "HTML entry page", static(INDEX_HTML)),
    ]


def get_metadata_templates() -> list[FileTemplate]:
    """Templates for README, container build and ignore rules."""
    return [
        FileTemplate("README.md", "markdown", "Project documentation", static(README)),
        FileTemplate("Dockerfile", "dockerfile", "Container build definition", static(DOCKERFILE)),
        FileTemplate(".gitignore", "text", "Version control ignore rules", static(GITIGNORE)),
    ]
