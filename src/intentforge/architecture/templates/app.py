"""Application shell templates: entry point, styles, storage hook and App.

App.tsx is composed from fragments. Item management is wired in when the
requirements call for crud or data-display; the search box and toast
notifications are layered on top of that when requested.
"""

from __future__ import annotations

from intentforge.architecture.templates.base import (
    FileTemplate,
    TemplateContext,
    static,
    substitute,
)

MAIN_TSX = """import React from 'react'
import ReactDOM from 'react-dom/client'
import App from './App'
import './index.css'

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>,
)
"""

INDEX_CSS = """@tailwind base;
@tailwind components;
@tailwind utilities;

body {
  @apply bg-gray-50 text-gray-900 antialiased dark:bg-gray-900 dark:text-gray-100;
}
"""

USE_LOCAL_STORAGE = """import { useEffect, useState } from 'react'

export function useLocalStorage<T>(key: string, initialValue: T) {
  const [value, setValue] = useState<T>(() => {
    try {
      const stored = window.localStorage.getItem(key)
      return stored !== null ? (JSON.parse(stored) as T) : initialValue
    } catch {
      return initialValue
    }
  })

  useEffect(() => {
    window.localStorage.setItem(key, JSON.stringify(value))
  }, [key, value])

  return [value, setValue] as const
}
"""

LANDING_APP = """const PROJECT_NAME = {{PROJECT_NAME_JS}}

function App() {
  return (
    <div className="min-h-screen">
      <main className="mx-auto max-w-4xl px-4 py-16 text-center">
        <h1 className="text-4xl font-bold">{PROJECT_NAME}</h1>
        <p className="mt-4 text-lg text-gray-600 dark:text-gray-300">{{PROJECT_DESCRIPTION_JSX}}</p>
      </main>
    </div>
  )
}

export default App
"""

ITEMS_APP = """{{IMPORTS}}

const PROJECT_NAME = {{PROJECT_NAME_JS}}
const PROJECT_DESCRIPTION = {{PROJECT_DESCRIPTION_JS}}

function App() {
  const [items, setItems] = useLocalStorage<Item[]>('{{STORAGE_PREFIX}}-items', [])
{{STATE}}
  const addItem = (item: NewItem) => {
    setItems((current) => [
      ...current,
      { ...item, id: crypto.randomUUID(), status: 'todo', createdAt: new Date().toISOString() },
    ])
{{ON_ADD}}  }

  const updateItem = (id: string, changes: Partial<Item>) => {
    setItems((current) => current.map((item) => (item.id === id ? { ...item, ...changes } : item)))
  }

  const deleteItem = (id: string) => {
    setItems((current) => current.filter((item) => item.id !== id))
{{ON_DELETE}}  }
{{FILTER}}
  return (
    <div className="min-h-screen">
{{TOASTER}}      <Header title={PROJECT_NAME} subtitle={PROJECT_DESCRIPTION} />
      <main className="mx-auto max-w-4xl space-y-6 px-4 py-8">
        <ItemForm onAdd={addItem} />
{{SEARCH_INPUT}}        <ItemList items={{{VISIBLE}}} onUpdate={updateItem} onDelete={deleteItem} />
      </main>
    </div>
  )
}

export default App
"""

SEARCH_STATE = """  const [query, setQuery] = useState('')
"""

SEARCH_FILTER = """
  const visibleItems = useMemo(() => {
    const needle = query.trim().toLowerCase()
    if (!needle) {
      return items
    }
    return items.filter(
      (item) =>
        item.title.toLowerCase().includes(needle) ||
        item.description.toLowerCase().includes(needle),
    )
  }, [items, query])
"""

SEARCH_INPUT = """        <input
          type="search"
          value={query}
          onChange={(event) => setQuery(event.target.value)}
          placeholder="Search..."
          aria-label="Search"
          className="w-full rounded-md border border-gray-300 px-3 py-2 dark:border-gray-600 dark:bg-gray-800 dark:text-white"
        />
"""


def _imports(ctx: TemplateContext) -> str:
    lines = []
    if ctx.has_search:
        lines.append("import { useMemo, useState } from 'react'")
    if ctx.has_notifications:
        lines.append("import toast, { Toaster } from 'react-hot-toast'")
    lines += [
        "import Header from './components/Header'",
        "import ItemForm from './components/ItemForm'",
        "import ItemList from './components/ItemList'",
        "import { useLocalStorage } from './hooks/useLocalStorage'",
        "import type { Item, NewItem } from './types'",
    ]
    return "\n".join(lines)


def render_app(ctx: TemplateContext) -> str:
    """Compose App.tsx for the requirement set."""
    if not ctx.has_items:
        return substitute(LANDING_APP, ctx)

    return substitute(
        ITEMS_APP,
        ctx,
        IMPORTS=_imports(ctx),
        STATE=SEARCH_STATE if ctx.has_search else "",
        FILTER=SEARCH_FILTER if ctx.has_search else "",
        SEARCH_INPUT=SEARCH_INPUT if ctx.has_search else "",
        VISIBLE="visibleItems" if ctx.has_search else "items",
        ON_ADD="    toast.success('Item added')\n" if ctx.has_notifications else "",
        ON_DELETE="    toast('Item deleted')\n" if ctx.has_notifications else "",
        TOASTER="      <Toaster position=\"top-right\" />\n" if ctx.has_notifications else "",
    )


def get_app_templates() -> list[FileTemplate]:
    """Templates for the entry point, global styles and App component."""
    return [
        FileTemplate("src/main.tsx", "typescript", "Application entry point", static(MAIN_TSX)),
        FileTemplate("src/index.css", "css", "Global styles", static(INDEX_CSS)),
        FileTemplate("src/App.tsx", "typescript", "Root application component", render_app),
    ]


def get_hook_templates() -> list[FileTemplate]:
    return [
        FileTemplate(
            "src/hooks/useLocalStorage.ts", "typescript", "Persistent state hook",
            static(USE_LOCAL_STORAGE),
        ),
    ]
