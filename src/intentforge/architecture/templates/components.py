"""Item-management templates: shared types and the React components.

The ordering constants in ``src/types/index.ts`` are rendered from the
tuples below; the generated ItemList sorts by status rank, then priority rank.
"""

from __future__ import annotations

from intentforge.architecture.templates.base import (
    FileTemplate,
    TemplateContext,
    static,
    substitute,
    with_items,
)

STATUS_ORDER: tuple[str, ...] = ("in-progress", "todo", "done")
PRIORITY_ORDER: tuple[str, ...] = ("high", "medium", "low")


def _rank_literal(order: tuple[str, ...]) -> str:
    entries = ", ".join(f"'{value}': {rank}" for rank, value in enumerate(order))
    return "{ " + entries + " }"


def _union_literal(order: tuple[str, ...]) -> str:
    return " | ".join(f"'{value}'" for value in order)


TYPES = """export type ItemStatus = {{STATUS_UNION}}

export type ItemPriority = {{PRIORITY_UNION}}

export interface Item {
  id: string
  title: string
  description: string
  status: ItemStatus
  priority: ItemPriority
  createdAt: string
}

export type NewItem = Pick<Item, 'title' | 'description' | 'priority'>

export const STATUS_ORDER: Record<ItemStatus, number> = {{STATUS_RANKS}}

export const PRIORITY_ORDER: Record<ItemPriority, number> = {{PRIORITY_RANKS}}

export const STATUS_LABELS: Record<ItemStatus, string> = {
  'in-progress': 'In progress',
  todo: 'To do',
  done: 'Done',
}
"""


def render_types(ctx: TemplateContext) -> str:
    return substitute(
        TYPES,
        ctx,
        STATUS_UNION=_union_literal(STATUS_ORDER),
        PRIORITY_UNION=_union_literal(PRIORITY_ORDER),
        STATUS_RANKS=_rank_literal(STATUS_ORDER),
        PRIORITY_RANKS=_rank_literal(PRIORITY_ORDER),
    )


HEADER = """import { useEffect, useState } from 'react'

const THEME_KEY = '{{STORAGE_PREFIX}}-theme'

function initialDarkMode(): boolean {
  const stored = window.localStorage.getItem(THEME_KEY)
  if (stored !== null) {
    return stored === 'dark'
  }
  return window.matchMedia('(prefers-color-scheme: dark)').matches
}

interface HeaderProps {
  title: string
  subtitle?: string
}

export default function Header({ title, subtitle }: HeaderProps) {
  const [darkMode, setDarkMode] = useState<boolean>(initialDarkMode)

  useEffect(() => {
    document.documentElement.classList.toggle('dark', darkMode)
    window.localStorage.setItem(THEME_KEY, darkMode ? 'dark' : 'light')
  }, [darkMode])

  return (
    <header className="border-b border-gray-200 bg-white dark:border-gray-700 dark:bg-gray-800">
      <div className="mx-auto flex max-w-4xl items-center justify-between px-4 py-4">
        <div>
          <h1 className="text-2xl font-bold text-gray-900 dark:text-white">{title}</h1>
          {subtitle && <p className="text-sm text-gray-500 dark:text-gray-400">{subtitle}</p>}
        </div>
        <button
          type="button"
          aria-label="Toggle dark mode"
          aria-pressed={darkMode}
          onClick={() => setDarkMode((current) => !current)}
          className="rounded-md border border-gray-300 px-3 py-1 text-sm text-gray-700 hover:bg-gray-100 dark:border-gray-600 dark:text-gray-200 dark:hover:bg-gray-700"
        >
          {darkMode ? 'Light mode' : 'Dark mode'}
        </button>
      </div>
    </header>
  )
}
"""

ITEM_FORM = """import { FormEvent, useState } from 'react'
import type { ItemPriority, NewItem } from '../types'

interface ItemFormProps {
  onAdd: (item: NewItem) => void
}

export default function ItemForm({ onAdd }: ItemFormProps) {
  const [title, setTitle] = useState('')
  const [description, setDescription] = useState('')
  const [priority, setPriority] = useState<ItemPriority>('medium')

  const handleSubmit = (event: FormEvent) => {
    event.preventDefault()
    const trimmed = title.trim()
    if (!trimmed) {
      return
    }
    onAdd({ title: trimmed, description: description.trim(), priority })
    setTitle('')
    setDescription('')
    setPriority('medium')
  }

  return (
    <form onSubmit={handleSubmit} className="space-y-3 rounded-lg bg-white p-4 shadow dark:bg-gray-800">
      <input
        type="text"
        value={title}
        onChange={(event) => setTitle(event.target.value)}
        placeholder="Title"
        aria-label="Title"
        className="w-full rounded-md border border-gray-300 px-3 py-2 dark:border-gray-600 dark:bg-gray-700 dark:text-white"
      />
      <textarea
        value={description}
        onChange={(event) => setDescription(event.target.value)}
        placeholder="Description"
        aria-label="Description"
        rows={2}
        className="w-full rounded-md border border-gray-300 px-3 py-2 dark:border-gray-600 dark:bg-gray-700 dark:text-white"
      />
      <div className="flex items-center justify-between">
        <select
          value={priority}
          onChange={(event) => setPriority(event.target.value as ItemPriority)}
          aria-label="Priority"
          className="rounded-md border border-gray-300 px-3 py-2 dark:border-gray-600 dark:bg-gray-700 dark:text-white"
        >
          <option value="high">High</option>
          <option value="medium">Medium</option>
          <option value="low">Low</option>
        </select>
        <button
          type="submit"
          className="rounded-md bg-blue-600 px-4 py-2 font-medium text-white hover:bg-blue-700"
        >
          Add
        </button>
      </div>
    </form>
  )
}
"""

ITEM_LIST = """import { PRIORITY_ORDER, STATUS_ORDER } from '../types'
import type { Item } from '../types'
import ItemCard from './ItemCard'

interface ItemListProps {
  items: Item[]
  onUpdate: (id: string, changes: Partial<Item>) => void
  onDelete: (id: string) => void
}

export function sortItems(items: Item[]): Item[] {
  return [...items].sort(
    (a, b) =>
      STATUS_ORDER[a.status] - STATUS_ORDER[b.status] ||
      PRIORITY_ORDER[a.priority] - PRIORITY_ORDER[b.priority],
  )
}

export default function ItemList({ items, onUpdate, onDelete }: ItemListProps) {
  if (items.length === 0) {
    return <p className="py-8 text-center text-gray-500 dark:text-gray-400">No items yet.</p>
  }

  return (
    <ul className="space-y-3">
      {sortItems(items).map((item) => (
        <li key={item.id}>
          <ItemCard item={item} onUpdate={onUpdate} onDelete={onDelete} />
        </li>
      ))}
    </ul>
  )
}
"""

ITEM_CARD = """import { STATUS_LABELS } from '../types'
import type { Item, ItemStatus } from '../types'

interface ItemCardProps {
  item: Item
  onUpdate: (id: string, changes: Partial<Item>) => void
  onDelete: (id: string) => void
}

const PRIORITY_STYLES: Record<Item['priority'], string> = {
  high: 'bg-red-100 text-red-800 dark:bg-red-900 dark:text-red-200',
  medium: 'bg-yellow-100 text-yellow-800 dark:bg-yellow-900 dark:text-yellow-200',
  low: 'bg-green-100 text-green-800 dark:bg-green-900 dark:text-green-200',
}

export default function ItemCard({ item, onUpdate, onDelete }: ItemCardProps) {
  return (
    <div className="flex items-start justify-between gap-4 rounded-lg bg-white p-4 shadow dark:bg-gray-800">
      <div className="min-w-0 flex-1">
        <div className="flex items-center gap-2">
          <h3
            className={`font-semibold text-gray-900 dark:text-white ${
              item.status === 'done' ? 'line-through opacity-60' : ''
            }`}
          >
            {item.title}
          </h3>
          <span className={`rounded px-2 py-0.5 text-xs ${PRIORITY_STYLES[item.priority]}`}>
            {item.priority}
          </span>
        </div>
        {item.description && (
          <p className="mt-1 text-sm text-gray-600 dark:text-gray-300">{item.description}</p>
        )}
      </div>
      <div className="flex items-center gap-2">
        <select
          value={item.status}
          onChange={(event) => onUpdate(item.id, { status: event.target.value as ItemStatus })}
          aria-label="Status"
          className="rounded-md border border-gray-300 px-2 py-1 text-sm dark:border-gray-600 dark:bg-gray-700 dark:text-white"
        >
          {Object.entries(STATUS_LABELS).map(([value, label]) => (
            <option key={value} value={value}>
              {label}
            </option>
          ))}
        </select>
        <button
          type="button"
          onClick={() => onDelete(item.id)}
          className="rounded-md px-2 py-1 text-sm text-red-600 hover:bg-red-50 dark:hover:bg-gray-700"
        >
          Delete
        </button>
      </div>
    </div>
  )
}
"""


def get_types_template() -> FileTemplate:
    return FileTemplate("src/types/index.ts", "typescript", "Shared item types", render_types)


def get_component_templates() -> list[FileTemplate]:
    """Templates for the item-management components.

    Emitted only when the requirements include crud or data-display.
    """
    return [
        FileTemplate(
            "src/components/Header.tsx", "typescript", "Header with dark-mode toggle",
            static(HEADER), with_items,
        ),
        FileTemplate(
            "src/components/ItemForm.tsx", "typescript", "Form for adding items",
            static(ITEM_FORM), with_items,
        ),
        FileTemplate(
            "src/components/ItemList.tsx", "typescript", "Sorted item list",
            static(ITEM_LIST), with_items,
        ),
        FileTemplate(
            "src/components/ItemCard.tsx", "typescript", "Single item display and controls",
            static(ITEM_CARD), with_items,
        ),
    ]
